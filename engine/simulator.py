"""
Simulation engine — composes translator, forecast, projection and risk analysis.

    params ──translate──▶ ScenarioImpact
    provider (gateway, bounded wait) ──▶ Forecast ──┐
        └─ on failure: trend ▶ benchmark ───────────┤
                                                    ▼
                                  project ──▶ CashFlowProjection ──analyze──▶ signals

Parameters are validated before the provider is called. Provider outages and
empty forecasts degrade the result instead of failing it; only a business
with neither history nor revenue is an error.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.config import DEFAULT_CONFIG, SimulationConfig
from core.errors import InsufficientData, InvalidParameters, ProviderUnavailable
from core.schema import (
    FLAG_DEGRADED_FORECAST,
    BusinessContext,
    CashFlowProjection,
    ComparisonResult,
    Forecast,
    ForecastSource,
    RiskSignal,
    ScenarioImpact,
    ScenarioResult,
    SimulationStatus,
    to_plain,
)
from core.utils import to_date
from comparison.comparator import compare
from forecasting.base import ForecastProvider, align_forecast
from forecasting.benchmarks import benchmark_forecast
from forecasting.circuit import CircuitBreaker
from forecasting.gateway import ForecastGateway
from forecasting.historical import trend_forecast
from risk.analyzer import analyze
from scenarios.translator import translate
from scenarios.validators import assess_data_quality, validate_context

from .projection import project

logger = logging.getLogger(__name__)

_CONTEXT_GUIDANCE = {
    "monthly_revenue": "report monthly revenue as a non-negative amount",
    "employee_count": "report headcount as zero or more employees",
    "revenue_history": "drop or correct the negative revenue observations",
}


@dataclass(frozen=True)
class SimulationResult:
    """
    Outcome of one simulation.

    ``status`` is ``ok`` when the provider supplied the baseline and
    ``degraded`` when a fallback did; ``warnings`` says why.
    """
    scenario_id: str
    impact: ScenarioImpact
    projection: CashFlowProjection
    signals: Tuple[RiskSignal, ...]
    status: SimulationStatus
    forecast_source: ForecastSource
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_degraded(self) -> bool:
        return self.status == SimulationStatus.DEGRADED

    def to_scenario_result(self) -> ScenarioResult:
        return ScenarioResult(
            scenario_id=self.scenario_id,
            projection=self.projection,
            signals=self.signals,
        )

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


class SimulationEngine:
    """
    Runs decision simulations against one injected forecast provider.

    The engine owns a ForecastGateway (and through it the circuit breaker),
    so repeated simulations share provider health. Use it as a context
    manager, or call ``close()``, to release the gateway's threads.
    """

    def __init__(
        self,
        provider: ForecastProvider,
        config: Optional[SimulationConfig] = None,
        *,
        breaker: Optional[CircuitBreaker] = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.gateway = ForecastGateway(
            provider,
            breaker=breaker or CircuitBreaker(self.config.circuit),
        )

    def close(self) -> None:
        self.gateway.close()

    def __enter__(self) -> "SimulationEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # single simulation
    # ------------------------------------------------------------------

    def simulate(
        self,
        context: BusinessContext,
        params: Any,
        *,
        as_of: Optional[date] = None,
        horizon_days: Optional[int] = None,
        scenario_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SimulationResult:
        """
        Simulate one decision for one business.

        Parameters
        ----------
        context : BusinessContext
            Read-only business snapshot
        params : mapping or ScenarioParams variant
            Decision parameters; validated before anything else happens
        as_of : date, optional
            Evaluation date (day 0); defaults to today
        horizon_days : int, optional
            Projection length; defaults to ``config.horizon_days``
        scenario_id : str, optional
            Identifier carried into the result; generated when omitted
        cancel_event : threading.Event, optional
            Setting it while the provider call is pending aborts with
            SimulationCancelled

        Raises
        ------
        InvalidParameters, InsufficientData, SimulationCancelled,
        InternalInvariantViolation
        """
        cfg = self.config
        started = time.monotonic()
        as_of = to_date(as_of) if as_of is not None else date.today()
        horizon = cfg.horizon_days if horizon_days is None else int(horizon_days)
        if horizon <= 0:
            raise InvalidParameters(
                f"horizon_days must be > 0, got {horizon}",
                field="horizon_days",
                guidance="request at least one day, e.g. 90",
            )

        impact = translate(params, as_of=as_of, config=cfg)
        sid = scenario_id or f"{impact.decision_type.value}-{uuid.uuid4().hex[:8]}"

        validation = validate_context(context, cfg)
        if not validation.is_valid:
            raise InvalidParameters(
                f"Business context {context.business_id} is invalid: {'; '.join(validation.errors)}",
                field=validation.error_fields[0],
                guidance=_CONTEXT_GUIDANCE[validation.error_fields[0]],
            )
        data_quality = assess_data_quality(context, cfg, validation=validation)
        warnings: List[str] = list(validation.warnings)

        remaining = cfg.time_budget_seconds - (time.monotonic() - started)
        timeout = max(min(cfg.provider_timeout_seconds, remaining), 0.0)

        source = ForecastSource.PROVIDER
        try:
            baseline = self.gateway.fetch(
                context.business_id,
                horizon,
                timeout=timeout,
                cancel_event=cancel_event,
            )
            baseline = align_forecast(baseline, as_of)
        except (ProviderUnavailable, InsufficientData) as exc:
            baseline, source = self._fallback_baseline(context, as_of, horizon, exc)
            warnings.append(
                f"Forecast provider unavailable ({exc}); baseline estimated from {source.value} data."
            )

        projection = project(baseline, impact, horizon, data_quality=data_quality, config=cfg)
        if source != ForecastSource.PROVIDER:
            projection = projection.with_flags(FLAG_DEGRADED_FORECAST, source=source)

        signals = analyze(
            projection,
            context,
            cfg.cashflow_threshold,
            cfg.critical_days,
            impact=impact,
            config=cfg,
        )

        elapsed = time.monotonic() - started
        if elapsed > cfg.time_budget_seconds:
            logger.warning(
                "simulation %s for %s took %.2fs (budget %.2fs)",
                sid,
                context.business_id,
                elapsed,
                cfg.time_budget_seconds,
            )

        status = SimulationStatus.OK if source == ForecastSource.PROVIDER else SimulationStatus.DEGRADED
        logger.info(
            "simulated %s for %s: status=%s source=%s net_change=%s signals=%d (%.3fs)",
            sid,
            context.business_id,
            status.value,
            source.value,
            projection.summary.net_change,
            len(signals),
            elapsed,
        )
        return SimulationResult(
            scenario_id=sid,
            impact=impact,
            projection=projection,
            signals=tuple(signals),
            status=status,
            forecast_source=source,
            warnings=tuple(warnings),
        )

    def _fallback_baseline(
        self,
        context: BusinessContext,
        as_of: date,
        horizon_days: int,
        cause: Exception,
    ) -> Tuple[Forecast, ForecastSource]:
        """Trend from history first, then the regional benchmark."""
        logger.warning("forecast provider failed for %s: %s; using fallback", context.business_id, cause)
        try:
            return trend_forecast(context, as_of, horizon_days, config=self.config), ForecastSource.TREND
        except InsufficientData as exc:
            logger.info("trend fallback unavailable for %s: %s", context.business_id, exc)
        try:
            return benchmark_forecast(context, as_of, horizon_days, config=self.config), ForecastSource.BENCHMARK
        except InsufficientData as exc:
            raise InsufficientData(
                f"Cannot build a baseline for {context.business_id}: provider failed ({cause}) "
                f"and no history or revenue is available."
            ) from exc

    # ------------------------------------------------------------------
    # batches
    # ------------------------------------------------------------------

    def simulate_many(
        self,
        context: BusinessContext,
        scenarios: Mapping[str, Any],
        *,
        as_of: Optional[date] = None,
        horizon_days: Optional[int] = None,
        max_workers: int = 4,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[SimulationResult]:
        """
        Simulate independent decisions in parallel threads.

        ``scenarios`` maps scenario id to params; results come back in the
        mapping's order. The first error raised by any simulation propagates.
        """
        as_of = to_date(as_of) if as_of is not None else date.today()
        items = list(scenarios.items())
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="simulate") as pool:
            futures = [
                pool.submit(
                    self.simulate,
                    context,
                    params,
                    as_of=as_of,
                    horizon_days=horizon_days,
                    scenario_id=sid,
                    cancel_event=cancel_event,
                )
                for sid, params in items
            ]
            return [f.result() for f in futures]

    def compare_decisions(
        self,
        context: BusinessContext,
        scenarios: Mapping[str, Any],
        *,
        as_of: Optional[date] = None,
        horizon_days: Optional[int] = None,
    ) -> Tuple[ComparisonResult, List[SimulationResult]]:
        """Simulate every scenario and compare them against the first one."""
        if len(scenarios) < 2:
            raise InvalidParameters(
                f"comparison needs at least 2 scenarios, got {len(scenarios)}",
                field="scenarios",
                guidance="add a baseline scenario such as \"wait\" to compare against",
            )
        results = self.simulate_many(context, scenarios, as_of=as_of, horizon_days=horizon_days)
        comparison = compare([r.to_scenario_result() for r in results])
        return comparison, results


def simulate(
    context: BusinessContext,
    params: Any,
    provider: ForecastProvider,
    *,
    as_of: Optional[date] = None,
    horizon_days: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> SimulationResult:
    """One-shot simulation with a throwaway engine (fresh circuit breaker)."""
    with SimulationEngine(provider, config) as engine:
        return engine.simulate(
            context,
            params,
            as_of=as_of,
            horizon_days=horizon_days,
            cancel_event=cancel_event,
        )

