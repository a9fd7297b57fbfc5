"""
Data I/O utilities.

Provides thin helpers to:
- Load tasks (and optional settings) from a JSON task sheet
- Save tasks back to a JSON task sheet

A task sheet is either a JSON array of task objects, or an object:

    {"settings": {...}, "tasks": [...]}

Keys may use this package's field names (task_name, ai_verified_units)
or the camelCase names exported by the web app (taskName,
aiVerifiedUnits, referenceNumber, id).
"""

from __future__ import annotations

from dataclasses import asdict
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .exceptions import TaskValidationError
from .schema import FACTOR_NAMES, Settings, Task

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# field name -> accepted JSON keys, in lookup order
_KEY_ALIASES: Dict[str, Tuple[str, ...]] = {
    "task_id": ("task_id", "id"),
    "task_name": ("task_name", "taskName"),
    "reference_number": ("reference_number", "referenceNumber"),
    "ai_verified_units": ("ai_verified_units", "aiVerifiedUnits"),
    "hourly_rate": ("hourly_rate", "hourlyRate"),
    "vendor_rate": ("vendor_rate", "vendorRate"),
    "actual_hours": ("actual_hours", "actualHours"),
    "progress_percentage": ("progress_percentage", "progressPercentage"),
    "unit_to_hour_ratio": ("unit_to_hour_ratio", "unitToHourRatio"),
    "industry_preset": ("industry_preset", "industryPreset"),
}


def _lookup(row: Dict[str, Any], name: str) -> Any:
    for key in _KEY_ALIASES.get(name, (name,)):
        if key in row:
            return row[key]
    return None


def _number(row: Dict[str, Any], name: str, ref: Optional[str], default: Optional[float]):
    val = _lookup(row, name)
    if val in (None, ""):
        return default
    if isinstance(val, bool):
        raise TaskValidationError(ref, name, val)
    try:
        return float(val)
    except (TypeError, ValueError):
        raise TaskValidationError(ref, name, val) from None


def task_from_dict(row: Dict[str, Any]) -> Task:
    """
    Build a Task from a JSON object.

    Missing factors default to 0.0. Non-numeric values, or a row that is
    not a JSON object, raise TaskValidationError.
    """
    if not isinstance(row, dict):
        raise TaskValidationError(None, "tasks", row)

    task_id = _lookup(row, "task_id")
    task_id = str(task_id) if task_id not in (None, "") else None
    task_name = str(_lookup(row, "task_name") or "")
    ref = task_name or task_id

    reference_number = _lookup(row, "reference_number")

    values = {name: _number(row, name, ref, 0.0) for name in FACTOR_NAMES}
    missing = [name for name in FACTOR_NAMES if _lookup(row, name) in (None, "")]
    if missing:
        logger.warning("Task %s: missing factors %s default to 0", ref, ", ".join(missing))

    return Task(
        task_id=task_id,
        task_name=task_name,
        reference_number=str(reference_number) if reference_number else None,
        ai_verified_units=_number(row, "ai_verified_units", ref, 0.0),
        hourly_rate=_number(row, "hourly_rate", ref, None),
        vendor_rate=_number(row, "vendor_rate", ref, None),
        actual_hours=_number(row, "actual_hours", ref, None),
        progress_percentage=_number(row, "progress_percentage", ref, None),
        **values,
    )


def settings_from_dict(row: Dict[str, Any]) -> Settings:
    defaults = Settings()
    return Settings(
        hourly_rate=_number(row, "hourly_rate", "settings", defaults.hourly_rate),
        unit_to_hour_ratio=_number(
            row, "unit_to_hour_ratio", "settings", defaults.unit_to_hour_ratio
        ),
        industry_preset=str(_lookup(row, "industry_preset") or defaults.industry_preset),
    )


def load_sheet(path: PathLike) -> Tuple[List[Task], Optional[Settings]]:
    """
    Load tasks and, if present, settings from a JSON task sheet.

    Raises FileNotFoundError if the path does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Task sheet not found: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))

    settings: Optional[Settings] = None
    if isinstance(data, dict):
        if isinstance(data.get("settings"), dict):
            settings = settings_from_dict(data["settings"])
        rows = data.get("tasks", [])
    else:
        rows = data

    if not isinstance(rows, list):
        raise TaskValidationError(None, "tasks", rows)

    # empty placeholders ({} or null) are skipped
    tasks = [task_from_dict(row) for row in rows if row not in (None, {})]
    logger.debug("Loaded %d tasks from %s", len(tasks), path)
    return tasks, settings


def load_tasks_from_json(path: PathLike) -> List[Task]:
    tasks, _ = load_sheet(path)
    return tasks


def save_tasks_to_json(
    tasks: Iterable[Task],
    path: PathLike,
    settings: Optional[Settings] = None,
) -> None:
    """
    Save tasks to a JSON task sheet using this package's field names.

    Settings are written alongside when given.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload: Dict[str, Any] = {"tasks": [asdict(t) for t in tasks]}
    if settings is not None:
        payload["settings"] = asdict(settings)

    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
