"""
Configuration module for the PCI engine.

Single source of truth for:
- Default rate / unit-to-hour settings
- Industry presets
- Audit thresholds and the AAS divisor policy

All values can be overridden via environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Dict, Optional

from .exceptions import UnknownPresetError
from .pci_model import DivisorPolicy
from .schema import Settings


INDUSTRY_PRESETS: Dict[str, Dict[str, object]] = {
    "general": {"ratio": 1.5, "rate": 66.0, "description": "Standard software development projects"},
    "fintech": {"ratio": 1.8, "rate": 95.0, "description": "High complexity, regulatory compliance"},
    "healthcare": {"ratio": 1.7, "rate": 88.0, "description": "HIPAA compliance, medical accuracy"},
    "ecommerce": {"ratio": 1.4, "rate": 72.0, "description": "Transaction systems, inventory management"},
    "enterprise": {"ratio": 1.6, "rate": 85.0, "description": "Large-scale systems, multiple integrations"},
    "ai-ml": {"ratio": 2.0, "rate": 110.0, "description": "Machine learning, data science projects"},
}


def _get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _get_env_preset(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or value.strip() not in INDUSTRY_PRESETS:
        return default
    return value.strip()


def _get_env_policy(name: str, default: DivisorPolicy) -> DivisorPolicy:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return DivisorPolicy(value.strip().lower())
    except ValueError:
        return default


def settings_for_preset(name: str) -> Settings:
    """
    Build Settings from one of INDUSTRY_PRESETS.

    Raises UnknownPresetError for names not in the table.
    """
    preset = INDUSTRY_PRESETS.get(name)
    if preset is None:
        raise UnknownPresetError(name)
    return Settings(
        hourly_rate=float(preset["rate"]),  # type: ignore[arg-type]
        unit_to_hour_ratio=float(preset["ratio"]),  # type: ignore[arg-type]
        industry_preset=name,
    )


@dataclass
class Config:
    """
    Runtime configuration for the PCI engine.

    All fields default from environment variables but can be overridden
    programmatically by constructing Config(...) manually if needed.
    """

    # None means "take it from the industry preset"
    hourly_rate: Optional[float] = None
    unit_to_hour_ratio: Optional[float] = None
    industry_preset: str = "general"

    # Tasks with 0 < AAS < threshold are flagged for review
    low_aas_threshold: float = 85.0
    divisor_policy: DivisorPolicy = DivisorPolicy.EXACT

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Construct a Config object by reading environment variables.

        Environment variables (all optional):
        - PCI_HOURLY_RATE         (float)
        - PCI_UNIT_TO_HOUR_RATIO  (float)
        - PCI_INDUSTRY_PRESET
        - PCI_LOW_AAS_THRESHOLD   (float)
        - PCI_AAS_DIVISOR_POLICY  (exact / floor_one)
        - PCI_LOG_LEVEL
        """
        return cls(
            hourly_rate=_get_env_optional_float("PCI_HOURLY_RATE"),
            unit_to_hour_ratio=_get_env_optional_float("PCI_UNIT_TO_HOUR_RATIO"),
            industry_preset=_get_env_preset("PCI_INDUSTRY_PRESET", default="general"),
            low_aas_threshold=_get_env_float("PCI_LOW_AAS_THRESHOLD", default=85.0),
            divisor_policy=_get_env_policy(
                "PCI_AAS_DIVISOR_POLICY", default=DivisorPolicy.EXACT
            ),
            log_level=os.getenv("PCI_LOG_LEVEL", "INFO").upper(),
        )

    def settings(self) -> Settings:
        """
        Settings for the configured industry preset, with an explicitly
        configured rate / ratio taking precedence over the preset values.
        """
        settings = settings_for_preset(self.industry_preset)
        if self.hourly_rate is not None:
            settings.hourly_rate = self.hourly_rate
        if self.unit_to_hour_ratio is not None:
            settings.unit_to_hour_ratio = self.unit_to_hour_ratio
        return settings


_DEFAULT_CONFIG: Optional[Config] = None


def get_config(force_reload: bool = False) -> Config:
    """
    Return a process-wide Config instance.

    Use `force_reload=True` if environment variables changed at runtime
    and you want to refresh.
    """
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None or force_reload:
        _DEFAULT_CONFIG = Config.from_env()
    return _DEFAULT_CONFIG
