"""
Scenario definitions — typed decision parameters, impact translation, context validation.
"""

from .params import (
    CustomParams,
    HiringParams,
    InventoryParams,
    ScenarioParams,
    StoreLaunchParams,
    parse_scenario_params,
)
from .translator import translate
from .validators import ValidationResult, assess_data_quality, validate_context

__all__ = [
    "CustomParams",
    "HiringParams",
    "InventoryParams",
    "ScenarioParams",
    "StoreLaunchParams",
    "parse_scenario_params",
    "translate",
    "ValidationResult",
    "assess_data_quality",
    "validate_context",
]
