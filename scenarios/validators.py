"""
Data quality validation for business context snapshots before they enter the engine.

Catches problems early:
- Negative revenue or headcount
- Short or gappy revenue history
- Low-confidence observations
- Duplicate dates
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd

from core.config import DEFAULT_CONFIG, SimulationConfig
from core.schema import BusinessContext, DataQuality

LOW_CONFIDENCE = 0.5


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a context snapshot."""
    errors: List[str] = field(default_factory=list)
    # context field behind each entry in errors
    error_fields: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    history_days: int = 0
    mean_confidence: Optional[float] = None

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.append(message)
        self.error_fields.append(field_name)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def validate_context(
    context: BusinessContext,
    config: Optional[SimulationConfig] = None,
) -> ValidationResult:
    """
    Run all validation checks on a business context snapshot.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    cfg = config or DEFAULT_CONFIG
    result = ValidationResult()

    # --- Headline figures ---
    if context.monthly_revenue < 0:
        result.add_error("monthly_revenue", f"monthly_revenue is negative ({context.monthly_revenue}).")
    if context.employee_count < 0:
        result.add_error("employee_count", f"employee_count is negative ({context.employee_count}).")

    history = context.revenue_history
    if not history:
        result.warnings.append("No revenue history; forecasts will rely on benchmarks.")
        return result

    dates = pd.to_datetime([p.date for p in history])
    values = np.array([float(p.value) for p in history], dtype=float)
    conf = np.array([p.confidence for p in history], dtype=float)

    n_dup = int(pd.Index(dates).duplicated().sum())
    if n_dup > 0:
        result.warnings.append(f"{n_dup} duplicate dates in revenue history.")

    unique_days = pd.DatetimeIndex(dates).unique().sort_values()
    result.history_days = len(unique_days)
    result.mean_confidence = float(conf.mean())

    if result.history_days < cfg.sparse_history_days:
        result.warnings.append(
            f"Only {result.history_days} days of revenue history "
            f"(< {cfg.sparse_history_days}); projections are marked sparse."
        )

    span = (unique_days[-1] - unique_days[0]).days + 1
    n_gaps = span - len(unique_days)
    if n_gaps > 0:
        result.warnings.append(f"{n_gaps} missing days inside the revenue history window.")

    n_neg = int((values < 0).sum())
    if n_neg > 0:
        result.add_error("revenue_history", f"{n_neg} revenue observations are negative.")

    n_low = int((conf < LOW_CONFIDENCE).sum())
    if n_low > 0:
        result.warnings.append(f"{n_low} revenue observations have confidence < {LOW_CONFIDENCE}.")

    return result


def assess_data_quality(
    context: BusinessContext,
    config: Optional[SimulationConfig] = None,
    *,
    validation: Optional[ValidationResult] = None,
) -> DataQuality:
    """Sparse when history is short or mostly low-confidence."""
    cfg = config or DEFAULT_CONFIG
    v = validation or validate_context(context, cfg)
    if v.history_days < cfg.sparse_history_days:
        return DataQuality.SPARSE
    if v.mean_confidence is not None and v.mean_confidence < LOW_CONFIDENCE:
        return DataQuality.SPARSE
    return DataQuality.FULL
