"""
Project-level rollups built on the PCI model.

Responsibilities:
- Summarize a project (totals, overall AAS, hours, blended rate).
- Flag tasks with low Accuracy Audit Scores.
- Detect PCI outliers relative to the project average.
- Rank tasks and break PCI down by formula cluster.
- Produce the headline figures for a proposal.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from .pci_model import (
    DivisorPolicy,
    compute_aas,
    compute_pci,
    compute_verified_units,
    multi_layer,
    risk_engineering,
    scope_complexity,
    specialty_governance,
)
from .schema import Anomaly, ProjectSummary, ProposalEstimate, Settings, Task

logger = logging.getLogger(__name__)

DEFAULT_LOW_AAS_THRESHOLD = 85.0
DEFAULT_HIGH_FACTOR = 2.0
DEFAULT_LOW_FACTOR = 0.3


def _pci_vector(tasks: Sequence[Task]) -> np.ndarray:
    return np.asarray([compute_pci(t) for t in tasks], dtype=float)


def low_aas_tasks(
    tasks: Sequence[Task],
    threshold: float = DEFAULT_LOW_AAS_THRESHOLD,
    policy: DivisorPolicy = DivisorPolicy.EXACT,
) -> List[Task]:
    """
    Tasks whose AAS is below threshold.

    AAS == 0 means the task has not been verified yet (or has zero PCI)
    and is not flagged.
    """
    flagged = []
    for t in tasks:
        aas = compute_aas(t, policy)
        if 0.0 < aas < threshold:
            flagged.append(t)
    if flagged:
        logger.info(
            "%d task(s) below AAS threshold %.1f%%", len(flagged), threshold
        )
    return flagged


def summarize_project(
    tasks: Sequence[Task],
    settings: Optional[Settings] = None,
    *,
    policy: DivisorPolicy = DivisorPolicy.EXACT,
    low_aas_threshold: float = DEFAULT_LOW_AAS_THRESHOLD,
) -> ProjectSummary:
    """
    Dashboard totals for a list of tasks.

    Returns a ProjectSummary with:
    - total_pci / total_ai_verified_units / total_verified_units
    - total_verified_cost = verified units * hourly_rate
    - overall_aas = total AI-verified units / total PCI * 100 (0 if no PCI)
    - total_hours = verified units * unit_to_hour_ratio
    - effective_blended_rate = cost / hours (0 if no hours)
    - low_aas_task_ids
    """
    settings = settings or Settings()

    pci = _pci_vector(tasks)
    total_pci = math.fsum(pci.tolist())
    total_ai = math.fsum(t.ai_verified_units for t in tasks)
    total_verified = math.fsum(compute_verified_units(t, policy) for t in tasks)

    total_cost = total_verified * settings.hourly_rate
    total_hours = total_verified * settings.unit_to_hour_ratio
    overall_aas = (total_ai / total_pci) * 100.0 if total_pci > 0 else 0.0
    average_pci = float(pci.mean()) if pci.size > 0 else 0.0
    blended_rate = total_cost / total_hours if total_hours > 0 else 0.0

    low = low_aas_tasks(tasks, threshold=low_aas_threshold, policy=policy)

    logger.debug(
        "Summarized %d tasks: pci=%.2f verified=%.2f cost=%.2f",
        len(tasks),
        total_pci,
        total_verified,
        total_cost,
    )

    return ProjectSummary(
        task_count=len(tasks),
        total_pci=total_pci,
        total_ai_verified_units=total_ai,
        total_verified_units=total_verified,
        total_verified_cost=total_cost,
        overall_aas=overall_aas,
        average_pci=average_pci,
        total_hours=total_hours,
        effective_blended_rate=blended_rate,
        low_aas_task_ids=[t.task_id for t in low],
    )


def detect_anomalies(
    tasks: Sequence[Task],
    *,
    high_factor: float = DEFAULT_HIGH_FACTOR,
    low_factor: float = DEFAULT_LOW_FACTOR,
) -> List[Anomaly]:
    """
    Flag tasks whose PCI is far from the project average.

    A task is an outlier when PCI > avg * high_factor or
    PCI < avg * low_factor.
    """
    if not tasks:
        return []

    pci = _pci_vector(tasks)
    avg = float(pci.mean())
    mask = (pci > avg * high_factor) | (pci < avg * low_factor)

    anomalies = [
        Anomaly(
            task_id=t.task_id,
            task_name=t.task_name,
            pci=float(value),
            average_pci=avg,
            direction="above" if value > avg else "below",
        )
        for t, value, flagged in zip(tasks, pci, mask)
        if flagged
    ]
    if anomalies:
        logger.info("Found %d PCI anomalies (average %.2f)", len(anomalies), avg)
    return anomalies


def rank_by_pci(tasks: Sequence[Task]) -> List[Task]:
    """Tasks in descending PCI order; ties keep their input order."""
    return sorted(tasks, key=compute_pci, reverse=True)


def cluster_totals(tasks: Sequence[Task]) -> Dict[str, float]:
    """
    Sum of each formula cluster across tasks.

    The risk/engineering term is floored at 0 per task so the totals can
    be read as shares of effort.
    """
    return {
        "scope_complexity": math.fsum(scope_complexity(t) for t in tasks),
        "risk_engineering": math.fsum(max(0.0, risk_engineering(t)) for t in tasks),
        "multi_layer": math.fsum(multi_layer(t) for t in tasks),
        "specialty_governance": math.fsum(specialty_governance(t) for t in tasks),
    }


def estimate_proposal(
    tasks: Sequence[Task],
    settings: Optional[Settings] = None,
    budget: Optional[float] = None,
) -> ProposalEstimate:
    """
    Headline figures for a client proposal.

    Proposal figures are priced on raw PCI units (before verification):
    - total_cost  = total PCI * hourly_rate
    - total_hours = total PCI * unit_to_hour_ratio
    """
    settings = settings or Settings()

    total_pci = math.fsum(compute_pci(t) for t in tasks)
    total_cost = total_pci * settings.hourly_rate
    total_hours = total_pci * settings.unit_to_hour_ratio
    over_budget = budget is not None and total_cost > budget

    if over_budget:
        logger.info("Proposal cost %.2f exceeds budget %.2f", total_cost, budget)

    return ProposalEstimate(
        total_pci=total_pci,
        total_cost=total_cost,
        total_hours=total_hours,
        ranked_task_ids=[t.task_id for t in rank_by_pci(tasks)],
        budget=budget,
        over_budget=over_budget,
    )
