"""
Simulation configuration.
Every tunable threshold and budget lives here so that callers can override
them per request without touching module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class CircuitConfig:
    failure_threshold: int = 3
    success_threshold: int = 1
    cooldown_seconds: float = 60.0
    max_cooldown_seconds: float = 3600.0

    def __post_init__(self) -> None:
        if self.failure_threshold <= 0:
            raise ValueError("failure_threshold must be > 0")
        if self.success_threshold <= 0:
            raise ValueError("success_threshold must be > 0")
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")
        if self.max_cooldown_seconds < self.cooldown_seconds:
            raise ValueError("max_cooldown_seconds must be >= cooldown_seconds")


@dataclass(frozen=True)
class SimulationConfig:
    horizon_days: int = 90

    # the whole translate -> forecast -> project -> analyze call
    time_budget_seconds: float = 5.0
    provider_timeout_seconds: float = 3.0

    # cash-flow risk rule
    cashflow_threshold: float = 0.1
    critical_days: int = 30

    # operational risk rule
    recurring_cost_fraction: float = 0.25
    sustainable_headcount_ratio: float = 0.2

    # market risk rule
    market_confidence_floor: float = 0.5

    # data quality
    sparse_history_days: int = 30
    sparse_confidence_factor: float = 0.8
    extrapolation_widening_per_day: float = 0.02

    # recurring costs are quoted per month
    days_per_month: int = 30

    circuit: CircuitConfig = field(default_factory=CircuitConfig)

    def __post_init__(self) -> None:
        if self.horizon_days <= 0:
            raise ValueError("horizon_days must be > 0")
        if self.time_budget_seconds <= 0:
            raise ValueError("time_budget_seconds must be > 0")
        if self.provider_timeout_seconds <= 0:
            raise ValueError("provider_timeout_seconds must be > 0")
        if self.cashflow_threshold < 0:
            raise ValueError("cashflow_threshold must be >= 0")
        if not 0.0 < self.sparse_confidence_factor <= 1.0:
            raise ValueError("sparse_confidence_factor must be in (0, 1]")
        if self.days_per_month <= 0:
            raise ValueError("days_per_month must be > 0")

    def with_overrides(self, **overrides) -> "SimulationConfig":
        return replace(self, **overrides)


DEFAULT_CONFIG = SimulationConfig()
