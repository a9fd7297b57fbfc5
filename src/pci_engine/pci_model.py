"""
Pure math for the PCI (Project Cost Index) model.

No I/O. Just:
- The four formula clusters and the clamped PCI score
- Accuracy Audit Score (AAS) and verified units
- Cost aggregation over a collection of tasks

Formula:

    raw = (ISR * CF * UXI) + (RCF * AEP - L) + (MLW * CGW * RF) + (S * GLRI)
    PCI = max(0, raw)

Nothing in here raises. Factor values are assumed finite; NaN / inf
inputs are the caller's responsibility.
"""

from __future__ import annotations

from enum import Enum
import math
from typing import Iterable

from .schema import FormulaBreakdown, Task, TaskMetrics


class DivisorPolicy(str, Enum):
    """
    How AAS divides verified units by PCI.

    EXACT divides by PCI itself (AAS is 0 when PCI is 0).
    FLOOR_ONE divides by max(PCI, 1), matching figures produced by the
    client-portal views; it differs from EXACT only for 0 < PCI < 1.
    """

    EXACT = "exact"
    FLOOR_ONE = "floor_one"


# --- Formula clusters ------------------------------------------------------


def scope_complexity(task: Task) -> float:
    return task.ISR * task.CF * task.UXI


def risk_engineering(task: Task) -> float:
    # Learning curve offsets effort, it is not a multiplier.
    return task.RCF * task.AEP - task.L


def multi_layer(task: Task) -> float:
    return task.MLW * task.CGW * task.RF


def specialty_governance(task: Task) -> float:
    return task.S * task.GLRI


def raw_pci(task: Task) -> float:
    """Unclamped formula output; may be negative."""
    return (
        scope_complexity(task)
        + risk_engineering(task)
        + multi_layer(task)
        + specialty_governance(task)
    )


def formula_breakdown(task: Task) -> FormulaBreakdown:
    """
    Return each cluster term alongside the raw and clamped totals.
    """
    terms = (
        scope_complexity(task),
        risk_engineering(task),
        multi_layer(task),
        specialty_governance(task),
    )
    raw = sum(terms)
    return FormulaBreakdown(
        scope_complexity=terms[0],
        risk_engineering=terms[1],
        multi_layer=terms[2],
        specialty_governance=terms[3],
        raw=raw,
        pci=max(0.0, raw),
    )


def compute_pci(task: Task) -> float:
    """
    PCI units for a task. Always >= 0.
    """
    return max(0.0, raw_pci(task))


# --- Verification ----------------------------------------------------------


def _divisor(pci: float, policy: DivisorPolicy) -> float:
    if policy == DivisorPolicy.FLOOR_ONE:
        return max(pci, 1.0)
    return pci


def compute_aas(task: Task, policy: DivisorPolicy = DivisorPolicy.EXACT) -> float:
    """
    Accuracy Audit Score as a percentage.

    AAS = ai_verified_units / PCI * 100, and 0 when PCI is 0 under either
    policy. There is no upper clamp: AAS > 100 signals over-delivery.
    """
    pci = compute_pci(task)
    if pci == 0.0:
        return 0.0
    return (task.ai_verified_units / _divisor(pci, policy)) * 100.0


def compute_verified_units(
    task: Task,
    policy: DivisorPolicy = DivisorPolicy.EXACT,
) -> float:
    """
    Verified units = (AAS / 100) * PCI.

    Under EXACT this recovers ai_verified_units whenever PCI > 0 (up to
    rounding); under FLOOR_ONE it is scaled down for 0 < PCI < 1.
    """
    pci = compute_pci(task)
    aas = compute_aas(task, policy)
    return (aas / 100.0) * pci


def compute_task_cost(
    task: Task,
    hourly_rate: float,
    policy: DivisorPolicy = DivisorPolicy.EXACT,
) -> float:
    return compute_verified_units(task, policy) * hourly_rate


def aggregate_cost(
    tasks: Iterable[Task],
    hourly_rate: float,
    policy: DivisorPolicy = DivisorPolicy.EXACT,
) -> float:
    """
    Total verified cost of a collection of tasks.

    Empty input gives 0.0. hourly_rate is not validated; a negative rate
    simply yields a negative total.
    """
    # fsum keeps the total independent of task order.
    return math.fsum(compute_task_cost(t, hourly_rate, policy) for t in tasks)


def task_metrics(
    task: Task,
    hourly_rate: float,
    policy: DivisorPolicy = DivisorPolicy.EXACT,
) -> TaskMetrics:
    """
    All derived figures for one task in a single record.
    """
    breakdown = formula_breakdown(task)
    verified_units = compute_verified_units(task, policy)
    return TaskMetrics(
        task_id=task.task_id,
        task_name=task.task_name,
        pci=breakdown.pci,
        aas=compute_aas(task, policy),
        verified_units=verified_units,
        cost=verified_units * hourly_rate,
        breakdown=breakdown,
    )
