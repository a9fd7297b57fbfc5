"""
Custom exceptions for the PCI engine.

The calculator itself never raises; these cover loading task sheets and
invalid configuration of the rollups.
"""

from __future__ import annotations

from typing import Any, Optional


class PCIEngineError(Exception):
    """Base exception for the PCI engine."""

    pass


class TaskValidationError(PCIEngineError):
    """A task field could not be read as the expected type."""

    def __init__(self, task_ref: Optional[str], field: str, value: Any):
        self.task_ref = task_ref
        self.field = field
        self.value = value
        super().__init__(
            f"Task {task_ref or '<unnamed>'}: field {field!r} has invalid value {value!r}"
        )


class UnknownPresetError(PCIEngineError):
    """Industry preset name is not defined."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown industry preset: {name!r}")


class InvalidParameterError(PCIEngineError):
    """A rollup parameter is outside its usable range."""

    pass
