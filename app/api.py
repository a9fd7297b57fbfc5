"""
FastAPI app for the PCI engine.

Endpoints:
- POST /pci
- POST /cost
- POST /summary
- POST /anomalies
- POST /proposal
- POST /margins
- POST /savings
- POST /budget
- GET  /presets
- GET  /presets/{name}
"""

from __future__ import annotations

from dataclasses import asdict
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from pci_engine.analysis import detect_anomalies, estimate_proposal, summarize_project
from pci_engine.budget import calculate_budget_status
from pci_engine.config import INDUSTRY_PRESETS, get_config, settings_for_preset
from pci_engine.exceptions import PCIEngineError, UnknownPresetError
from pci_engine.margins import calculate_project_margins
from pci_engine.pci_model import DivisorPolicy, aggregate_cost, task_metrics
from pci_engine.savings import calculate_savings
from pci_engine.schema import MarginParams, Settings, Task

logger = logging.getLogger(__name__)

app = FastAPI(title="PCI Engine API")


# --- Request / Response schemas ----------------------------------------------


class TaskPayload(BaseModel):
    """
    A single task: the eleven PCI factors plus verified units.

    Omitted factors default to 0.
    """

    task_id: Optional[str] = None
    task_name: str = ""
    reference_number: Optional[str] = None

    ISR: float = 0.0
    CF: float = 0.0
    UXI: float = 0.0
    RCF: float = 0.0
    AEP: float = 0.0
    L: float = 0.0
    MLW: float = 0.0
    CGW: float = 0.0
    RF: float = 0.0
    S: float = 0.0
    GLRI: float = 0.0

    ai_verified_units: float = 0.0

    hourly_rate: Optional[float] = None
    vendor_rate: Optional[float] = None
    actual_hours: Optional[float] = None
    progress_percentage: Optional[float] = None

    def to_task(self) -> Task:
        return Task(**self.model_dump())


class SettingsPayload(BaseModel):
    hourly_rate: Optional[float] = None
    unit_to_hour_ratio: Optional[float] = None
    industry_preset: Optional[str] = None


def _configured_policy() -> DivisorPolicy:
    return get_config().divisor_policy


class SingleTaskRequest(BaseModel):
    task: TaskPayload
    hourly_rate: Optional[float] = None
    policy: DivisorPolicy = Field(default_factory=_configured_policy)


class TasksRequest(BaseModel):
    tasks: List[TaskPayload] = Field(default_factory=list)
    settings: Optional[SettingsPayload] = None
    policy: DivisorPolicy = Field(default_factory=_configured_policy)


class CostRequest(BaseModel):
    tasks: List[TaskPayload] = Field(default_factory=list)
    hourly_rate: float
    policy: DivisorPolicy = Field(default_factory=_configured_policy)


class AnomalyRequest(BaseModel):
    tasks: List[TaskPayload] = Field(default_factory=list)
    high_factor: float = 2.0
    low_factor: float = 0.3


class ProposalRequest(TasksRequest):
    budget: Optional[float] = None


class MarginParamsPayload(BaseModel):
    internal_rate: float = 66.0
    vendor_rate: float = 0.0
    sales_rate: float = 99.0
    locked_margin_percent: float = 35.0
    min_margin_percent: float = 20.0
    is_locked: bool = False
    task_vendor_rates: Dict[str, float] = Field(default_factory=dict)


class MarginRequest(BaseModel):
    tasks: List[TaskPayload] = Field(default_factory=list)
    params: MarginParamsPayload = Field(default_factory=MarginParamsPayload)


class CostResponse(BaseModel):
    task_count: int
    hourly_rate: float
    policy: DivisorPolicy
    total_cost: float


# --- Helpers -----------------------------------------------------------------


def resolve_settings(payload: Optional[SettingsPayload]) -> Settings:
    """
    Merge request settings over the preset (if named) or the configured
    defaults. Explicit rate / ratio values always win.
    """
    cfg = get_config()
    if payload is None:
        return cfg.settings()

    if payload.industry_preset:
        settings = settings_for_preset(payload.industry_preset)
    else:
        settings = cfg.settings()

    if payload.hourly_rate is not None:
        settings.hourly_rate = payload.hourly_rate
    if payload.unit_to_hour_ratio is not None:
        settings.unit_to_hour_ratio = payload.unit_to_hour_ratio
    return settings


def _bad_request(e: PCIEngineError) -> HTTPException:
    logger.warning("Rejected request: %s", e)
    return HTTPException(status_code=400, detail=str(e))


# --- Endpoints ---------------------------------------------------------------


@app.post("/pci")
def pci(request: SingleTaskRequest) -> dict:
    """
    PCI, AAS, verified units, cost and formula breakdown for one task.

    Body example:
    {
      "task": {"task_name": "Login", "ISR": 1, "CF": 1, "UXI": 1,
               "RCF": 1, "AEP": 1, "MLW": 1, "CGW": 1, "RF": 1,
               "S": 1, "GLRI": 1, "ai_verified_units": 4},
      "hourly_rate": 50
    }
    """
    rate = request.hourly_rate
    if rate is None:
        rate = get_config().settings().hourly_rate
    metrics = task_metrics(request.task.to_task(), rate, request.policy)
    return asdict(metrics)


@app.post("/cost", response_model=CostResponse)
def cost(request: CostRequest) -> CostResponse:
    tasks = [t.to_task() for t in request.tasks]
    return CostResponse(
        task_count=len(tasks),
        hourly_rate=request.hourly_rate,
        policy=request.policy,
        total_cost=aggregate_cost(tasks, request.hourly_rate, request.policy),
    )


@app.post("/summary")
def summary(request: TasksRequest) -> dict:
    try:
        settings = resolve_settings(request.settings)
    except PCIEngineError as e:
        raise _bad_request(e)

    result = summarize_project(
        [t.to_task() for t in request.tasks],
        settings,
        policy=request.policy,
        low_aas_threshold=get_config().low_aas_threshold,
    )
    out = asdict(result)
    out["has_low_aas"] = result.has_low_aas
    out["settings"] = asdict(settings)
    return out


@app.post("/anomalies")
def anomalies(request: AnomalyRequest) -> dict:
    found = detect_anomalies(
        [t.to_task() for t in request.tasks],
        high_factor=request.high_factor,
        low_factor=request.low_factor,
    )
    return {"count": len(found), "anomalies": [asdict(a) for a in found]}


@app.post("/proposal")
def proposal(request: ProposalRequest) -> dict:
    try:
        settings = resolve_settings(request.settings)
    except PCIEngineError as e:
        raise _bad_request(e)

    result = estimate_proposal(
        [t.to_task() for t in request.tasks],
        settings,
        budget=request.budget,
    )
    return asdict(result)


@app.post("/margins")
def margins(request: MarginRequest) -> dict:
    params = MarginParams(**request.params.model_dump())
    try:
        result = calculate_project_margins([t.to_task() for t in request.tasks], params)
    except PCIEngineError as e:
        raise _bad_request(e)
    return asdict(result)


@app.post("/savings")
def savings(request: TasksRequest) -> dict:
    try:
        settings = resolve_settings(request.settings)
    except PCIEngineError as e:
        raise _bad_request(e)
    return asdict(calculate_savings([t.to_task() for t in request.tasks], settings))


@app.post("/budget")
def budget(request: TasksRequest) -> dict:
    """
    Planned vs. actual spend and the completion forecast.

    Tasks carry actual_hours and progress_percentage (0-100).
    """
    try:
        settings = resolve_settings(request.settings)
    except PCIEngineError as e:
        raise _bad_request(e)

    result = calculate_budget_status(
        [t.to_task() for t in request.tasks],
        settings,
        policy=request.policy,
    )
    return asdict(result)


@app.get("/presets")
def presets() -> dict:
    return {"presets": INDUSTRY_PRESETS}


@app.get("/presets/{name}")
def preset(name: str) -> dict:
    try:
        return asdict(settings_for_preset(name))
    except UnknownPresetError as e:
        raise HTTPException(status_code=404, detail=str(e))


# Convenience for local dev:
# uvicorn app.api:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.api:app", host="0.0.0.0", port=8000, reload=True)
