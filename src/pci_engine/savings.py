"""
Project savings breakdown.

Compares three views of the same work:
- the unverified PCI estimate vs. the AI-verified estimate
- internal rates vs. vendor rates
- the verified plan vs. hours actually spent
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from .pci_model import compute_pci
from .schema import SavingsBreakdown, Settings, Task

logger = logging.getLogger(__name__)

FALLBACK_HOURLY_RATE = 66.0
VENDOR_MARKUP = 1.3


def _rate_for(task: Task, settings: Settings) -> float:
    return task.hourly_rate or settings.hourly_rate or FALLBACK_HOURLY_RATE


def calculate_savings(
    tasks: Sequence[Task],
    settings: Optional[Settings] = None,
) -> SavingsBreakdown:
    """
    Savings across AI verification, vendor rates and budget.

    Vendor cost defaults to a 30% markup on the task rate when the task
    has no vendor_rate. Missing actual_hours count as zero spent.
    """
    settings = settings or Settings()

    original = math.fsum(compute_pci(t) * _rate_for(t, settings) for t in tasks)
    optimized = math.fsum(t.ai_verified_units * _rate_for(t, settings) for t in tasks)
    internal = optimized
    vendor = math.fsum(
        t.ai_verified_units * (t.vendor_rate or _rate_for(t, settings) * VENDOR_MARKUP)
        for t in tasks
    )
    actual = math.fsum((t.actual_hours or 0.0) * _rate_for(t, settings) for t in tasks)

    ai_savings = original - optimized
    vendor_savings = vendor - internal
    budget_efficiency = optimized - actual
    total = ai_savings + vendor_savings + budget_efficiency

    logger.debug("Savings for %d tasks: total=%.2f", len(tasks), total)

    return SavingsBreakdown(
        ai_verification_savings=ai_savings,
        vendor_rate_savings=vendor_savings,
        budget_efficiency=budget_efficiency,
        total_savings=total,
        efficiency_percentage=(total / original) * 100.0 if original > 0 else 0.0,
        original_estimate=original,
        optimized_estimate=optimized,
        actual_spent=actual,
    )
