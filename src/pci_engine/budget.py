"""
Budget tracking: planned vs. actual spend and a completion forecast.

Per task:

    planned_hours = verified units
    planned_cost  = planned_hours * hourly_rate
    actual_cost   = actual_hours * hourly_rate
    variance      = actual_cost - planned_cost

The project forecast extrapolates actual spend from the average progress
of tasks that have started:

    forecast = total_actual_cost / (average_progress / 100)

and equals the planned total while nothing has progressed.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from .pci_model import DivisorPolicy, compute_verified_units
from .schema import BudgetStatus, Settings, Task, TaskBudget

logger = logging.getLogger(__name__)

ON_TRACK_MAX_VARIANCE = 5.0
WARNING_MAX_VARIANCE = 15.0


def _percent_of(value: float, base: float) -> float:
    return (value / base) * 100.0 if base > 0 else 0.0


def budget_health(variance_percent: float) -> str:
    if variance_percent <= ON_TRACK_MAX_VARIANCE:
        return "on-track"
    if variance_percent <= WARNING_MAX_VARIANCE:
        return "warning"
    return "critical"


def task_budget(
    task: Task,
    hourly_rate: float,
    policy: DivisorPolicy = DivisorPolicy.EXACT,
) -> TaskBudget:
    planned_hours = compute_verified_units(task, policy)
    planned_cost = planned_hours * hourly_rate
    actual_hours = task.actual_hours or 0.0
    actual_cost = actual_hours * hourly_rate
    variance = actual_cost - planned_cost
    return TaskBudget(
        task_id=task.task_id,
        task_name=task.task_name,
        planned_hours=planned_hours,
        planned_cost=planned_cost,
        actual_hours=actual_hours,
        actual_cost=actual_cost,
        variance=variance,
        variance_percent=_percent_of(variance, planned_cost),
        progress_percentage=task.progress_percentage or 0.0,
    )


def calculate_budget_status(
    tasks: Sequence[Task],
    settings: Optional[Settings] = None,
    policy: DivisorPolicy = DivisorPolicy.EXACT,
) -> BudgetStatus:
    """
    Roll up planned and actual spend across tasks.

    Only tasks with progress > 0 count towards average_progress. Every
    percentage is 0 when the planned total is 0.
    """
    settings = settings or Settings()
    rows = [task_budget(t, settings.hourly_rate, policy) for t in tasks]

    planned_hours = math.fsum(r.planned_hours for r in rows)
    planned_cost = math.fsum(r.planned_cost for r in rows)
    actual_hours = math.fsum(r.actual_hours for r in rows)
    actual_cost = math.fsum(r.actual_cost for r in rows)
    variance = actual_cost - planned_cost
    variance_percent = _percent_of(variance, planned_cost)

    started = [r.progress_percentage for r in rows if r.progress_percentage > 0]
    average_progress = math.fsum(started) / len(started) if started else 0.0

    if average_progress == 0:
        forecast = planned_cost
    else:
        forecast = actual_cost / (average_progress / 100.0)
    forecast_variance = forecast - planned_cost

    status = budget_health(variance_percent)
    if status != "on-track":
        logger.info(
            "Budget %s: actual %.2f vs planned %.2f (%.1f%%)",
            status, actual_cost, planned_cost, variance_percent,
        )

    return BudgetStatus(
        total_planned_hours=planned_hours,
        total_planned_cost=planned_cost,
        total_actual_hours=actual_hours,
        total_actual_cost=actual_cost,
        total_variance=variance,
        total_variance_percent=variance_percent,
        average_progress=average_progress,
        forecasted_total_cost=forecast,
        forecast_variance=forecast_variance,
        forecast_variance_percent=_percent_of(forecast_variance, planned_cost),
        status=status,
        tasks=rows,
    )
