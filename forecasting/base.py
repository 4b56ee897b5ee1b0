"""
Forecast provider interface — the statistical/ML model is an external collaborator.
Implementations are injected into the engine; nothing here holds a client.
"""

from __future__ import annotations

from datetime import date

from core.errors import InsufficientData
from core.schema import Forecast
from core.utils import days_between, to_date


class ForecastProvider:
    """
    Interface for baseline revenue forecasts (can be ML/statistical/remote).

    ``generate_forecast`` returns a Forecast starting at the evaluation date,
    or raises ProviderTimeout / ProviderUnavailable. It may block; the engine
    bounds the wait.
    """

    def generate_forecast(self, business_id: str, horizon_days: int) -> Forecast:
        raise NotImplementedError


def align_forecast(forecast: Forecast, as_of: date) -> Forecast:
    """
    Re-anchor a forecast so that day 0 is ``as_of``.

    Leading days before ``as_of`` are dropped. A forecast that starts after
    ``as_of`` or ends before it cannot supply day 0.
    """
    as_of = to_date(as_of)
    if forecast.horizon_days == 0:
        raise InsufficientData(f"Forecast for {forecast.business_id} has no data points.")
    skip = days_between(forecast.start_date, as_of)
    if skip < 0:
        raise InsufficientData(
            f"Forecast starts {forecast.start_date.isoformat()}, after the evaluation date "
            f"{as_of.isoformat()}."
        )
    if skip == 0:
        return forecast
    if skip >= forecast.horizon_days:
        raise InsufficientData(
            f"Forecast ends {forecast.end_date.isoformat()}, before the evaluation date "
            f"{as_of.isoformat()}."
        )
    return Forecast(
        business_id=forecast.business_id,
        start_date=as_of,
        daily_revenue=forecast.daily_revenue[skip:],
        lower_bound=forecast.lower_bound[skip:],
        upper_bound=forecast.upper_bound[skip:],
        confidence=forecast.confidence,
        model_version=forecast.model_version,
    )
