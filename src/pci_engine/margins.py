"""
Margin Lock calculations.

Converts each task's AI-verified units into hours at the internal rate,
then prices those hours at vendor and sales rates:

    hours        = ai_verified_units / internal_rate
    vendor_cost  = hours * vendor_rate   (per-task override if set)
    sales_price  = hours * sales_rate
    margin       = sales_price - vendor_cost
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from .exceptions import InvalidParameterError
from .schema import MarginParams, MarginSummary, Task, TaskMargin

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def margin_health(margin_percent: float) -> str:
    if margin_percent >= 40:
        return "Excellent"
    if margin_percent >= 30:
        return "Good"
    if margin_percent >= 20:
        return "Fair"
    return "At Risk"


def _vendor_rate_for(task: Task, params: MarginParams) -> float:
    override = params.task_vendor_rates.get(task.task_id) if task.task_id else None
    return override or params.vendor_rate


def task_margin(task: Task, params: MarginParams) -> TaskMargin:
    hours = task.ai_verified_units / params.internal_rate
    vendor_rate = _vendor_rate_for(task, params)
    vendor_cost = hours * vendor_rate
    sales_price = hours * params.sales_rate
    margin = sales_price - vendor_cost
    return TaskMargin(
        task_id=task.task_id,
        hours=hours,
        internal_cost=hours * params.internal_rate,
        vendor_rate=vendor_rate,
        vendor_cost=vendor_cost,
        sales_price=sales_price,
        margin=margin,
        margin_percent=(margin / sales_price) * 100.0 if sales_price > 0 else 0.0,
    )


def calculate_project_margins(
    tasks: Sequence[Task],
    params: MarginParams,
) -> MarginSummary:
    """
    Project-wide margin figures.

    Currency totals are rounded half-up to whole units; margin_percent
    and the per-task rows keep full precision.

    Raises InvalidParameterError if internal_rate is not positive.
    """
    if params.internal_rate <= 0:
        raise InvalidParameterError(
            f"internal_rate must be positive, got {params.internal_rate}"
        )

    rows = [task_margin(t, params) for t in tasks]

    total_hours = math.fsum(r.hours for r in rows)
    total_internal = math.fsum(r.internal_cost for r in rows)
    total_vendor = math.fsum(r.vendor_cost for r in rows)
    total_sales = math.fsum(r.sales_price for r in rows)
    total_margin = total_sales - total_vendor

    margin_percent = (total_margin / total_sales) * 100.0 if total_sales > 0 else 0.0
    avg_vendor_rate = total_vendor / total_hours if total_hours > 0 else params.vendor_rate

    at_risk = margin_percent < params.min_margin_percent
    if at_risk:
        logger.info(
            "Margin %.1f%% below minimum %.1f%%",
            margin_percent,
            params.min_margin_percent,
        )

    return MarginSummary(
        total_hours=total_hours,
        total_internal_cost=_round_half_up(total_internal),
        total_vendor_cost=_round_half_up(total_vendor),
        total_sales_price=_round_half_up(total_sales),
        total_margin=_round_half_up(total_margin),
        margin_percent=margin_percent,
        avg_vendor_rate=avg_vendor_rate,
        health=margin_health(margin_percent),
        at_risk=at_risk,
        tasks=rows,
    )
