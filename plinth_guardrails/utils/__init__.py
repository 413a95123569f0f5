"""Utility modules for the Plinth guardrail engine."""

from .config import (
    Settings,
    get_settings,
    GuardrailConfig,
    DEFAULT_CONFIG,
    get_guardrail_config,
)
from .domain import extract_domain
from .numeric import round_half_up, mean, population_std_dev

__all__ = [
    "Settings",
    "get_settings",
    # Thresholds
    "GuardrailConfig",
    "DEFAULT_CONFIG",
    "get_guardrail_config",
    # Domains
    "extract_domain",
    # Numeric
    "round_half_up",
    "mean",
    "population_std_dev",
]
