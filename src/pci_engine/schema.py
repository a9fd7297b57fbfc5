"""
Data schemas for the PCI engine.

Defines:
- Task: a single work item with the eleven PCI factors + verified units
- Settings: project-level rate / unit conversion settings
- MarginParams: inputs of the Margin Lock calculation
- Result records returned by pci_model, analysis, margins, savings and budget
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Formula inputs, in formula order.
FACTOR_NAMES = (
    "ISR",
    "CF",
    "UXI",
    "RCF",
    "AEP",
    "L",
    "MLW",
    "CGW",
    "RF",
    "S",
    "GLRI",
)


@dataclass
class Task:
    """
    Represents a single estimated task.

    Factor values are plain floats, roughly on a 0-10 scale. No bounds
    are enforced; out-of-range values are a data-quality concern of
    whoever builds the Task.
    """

    task_id: Optional[str] = None
    task_name: str = ""
    reference_number: Optional[str] = None

    # Implementation scope, complexity, UX impact
    ISR: float = 0.0
    CF: float = 0.0
    UXI: float = 0.0

    # Resource consumption, architectural effort, learning curve
    RCF: float = 0.0
    AEP: float = 0.0
    L: float = 0.0

    # Maintenance workload, code generation weight, rework/risk factor
    MLW: float = 0.0
    CGW: float = 0.0
    RF: float = 0.0

    # Skill level, global resource index
    S: float = 0.0
    GLRI: float = 0.0

    # Externally verified effort, independent of the formula inputs
    ai_verified_units: float = 0.0

    # Optional per-task overrides used by the savings rollup
    hourly_rate: Optional[float] = None
    vendor_rate: Optional[float] = None
    actual_hours: Optional[float] = None

    # Completion reported by the team, 0-100; feeds the budget forecast
    progress_percentage: Optional[float] = None

    def __post_init__(self) -> None:
        for name in FACTOR_NAMES:
            setattr(self, name, float(getattr(self, name)))
        self.ai_verified_units = float(self.ai_verified_units)
        if self.hourly_rate is not None:
            self.hourly_rate = float(self.hourly_rate)
        if self.vendor_rate is not None:
            self.vendor_rate = float(self.vendor_rate)
        if self.actual_hours is not None:
            self.actual_hours = float(self.actual_hours)
        if self.progress_percentage is not None:
            self.progress_percentage = float(self.progress_percentage)

    @property
    def label(self) -> str:
        return self.task_name or self.reference_number or self.task_id or "<unnamed>"


@dataclass
class Settings:
    """
    Project-wide settings feeding the cost math.

    unit_to_hour_ratio converts verified units into billable hours.
    """

    hourly_rate: float = 66.0
    unit_to_hour_ratio: float = 1.5
    industry_preset: str = "general"


@dataclass
class MarginParams:
    """
    Parameters of the Margin Lock calculation.

    task_vendor_rates overrides vendor_rate per task_id; a missing or
    zero entry falls back to vendor_rate.
    """

    internal_rate: float = 66.0
    vendor_rate: float = 0.0
    sales_rate: float = 99.0
    locked_margin_percent: float = 35.0
    min_margin_percent: float = 20.0
    is_locked: bool = False
    task_vendor_rates: Dict[str, float] = field(default_factory=dict)


# --- Result records --------------------------------------------------------


@dataclass
class FormulaBreakdown:
    scope_complexity: float
    risk_engineering: float
    multi_layer: float
    specialty_governance: float
    raw: float
    pci: float


@dataclass
class TaskMetrics:
    task_id: Optional[str]
    task_name: str
    pci: float
    aas: float
    verified_units: float
    cost: float
    breakdown: FormulaBreakdown


@dataclass
class ProjectSummary:
    task_count: int
    total_pci: float
    total_ai_verified_units: float
    total_verified_units: float
    total_verified_cost: float
    overall_aas: float
    average_pci: float
    total_hours: float
    effective_blended_rate: float
    low_aas_task_ids: List[Optional[str]] = field(default_factory=list)

    @property
    def has_low_aas(self) -> bool:
        return bool(self.low_aas_task_ids)


@dataclass
class Anomaly:
    task_id: Optional[str]
    task_name: str
    pci: float
    average_pci: float
    direction: str  # "above" | "below"


@dataclass
class ProposalEstimate:
    total_pci: float
    total_cost: float
    total_hours: float
    ranked_task_ids: List[Optional[str]] = field(default_factory=list)
    budget: Optional[float] = None
    over_budget: bool = False


@dataclass
class TaskMargin:
    task_id: Optional[str]
    hours: float
    internal_cost: float
    vendor_rate: float
    vendor_cost: float
    sales_price: float
    margin: float
    margin_percent: float


@dataclass
class MarginSummary:
    total_hours: float
    total_internal_cost: int
    total_vendor_cost: int
    total_sales_price: int
    total_margin: int
    margin_percent: float
    avg_vendor_rate: float
    health: str
    at_risk: bool
    tasks: List[TaskMargin] = field(default_factory=list)


@dataclass
class SavingsBreakdown:
    ai_verification_savings: float
    vendor_rate_savings: float
    budget_efficiency: float
    total_savings: float
    efficiency_percentage: float
    original_estimate: float
    optimized_estimate: float
    actual_spent: float


@dataclass
class TaskBudget:
    task_id: Optional[str]
    task_name: str
    planned_hours: float
    planned_cost: float
    actual_hours: float
    actual_cost: float
    variance: float
    variance_percent: float
    progress_percentage: float


@dataclass
class BudgetStatus:
    """
    Planned vs. actual spend for a project, with a completion forecast.

    status is one of "on-track", "warning" or "critical".
    """

    total_planned_hours: float
    total_planned_cost: float
    total_actual_hours: float
    total_actual_cost: float
    total_variance: float
    total_variance_percent: float
    average_progress: float
    forecasted_total_cost: float
    forecast_variance: float
    forecast_variance_percent: float
    status: str
    tasks: List[TaskBudget] = field(default_factory=list)
