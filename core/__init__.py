"""
Core package — entity definitions, configuration, errors, and shared utilities.
No business logic lives here.
"""

from .config import CircuitConfig, SimulationConfig, DEFAULT_CONFIG
from .errors import (
    DecisionEngineError,
    InvalidParameters,
    InsufficientData,
    ProviderUnavailable,
    ProviderTimeout,
    InternalInvariantViolation,
    SimulationCancelled,
)
from .schema import (
    BusinessContext,
    CashFlowProjection,
    ComparisonResult,
    DataPoint,
    DataQuality,
    DecisionType,
    Forecast,
    ForecastSource,
    ProjectionSummary,
    RiskSignal,
    RiskType,
    ScenarioImpact,
    ScenarioMetrics,
    ScenarioResult,
    Severity,
    SimulationStatus,
    TimePoint,
)
from .logging import get_logger, setup_logging
from .utils import to_money, day_range

__all__ = [
    "CircuitConfig",
    "SimulationConfig",
    "DEFAULT_CONFIG",
    "DecisionEngineError",
    "InvalidParameters",
    "InsufficientData",
    "ProviderUnavailable",
    "ProviderTimeout",
    "InternalInvariantViolation",
    "SimulationCancelled",
    "BusinessContext",
    "CashFlowProjection",
    "ComparisonResult",
    "DataPoint",
    "DataQuality",
    "DecisionType",
    "Forecast",
    "ForecastSource",
    "ProjectionSummary",
    "RiskSignal",
    "RiskType",
    "ScenarioImpact",
    "ScenarioMetrics",
    "ScenarioResult",
    "Severity",
    "SimulationStatus",
    "TimePoint",
    "get_logger",
    "setup_logging",
    "to_money",
    "day_range",
]
