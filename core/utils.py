from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Union

import numpy as np
import pandas as pd

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")


def to_money(value: Number) -> Decimal:
    """
    Quantize to 2 decimal places, half away from zero (Excel ROUND).

    Floats go through ``str`` first so 0.1 stays 0.10 rather than picking up
    binary noise.
    """
    if isinstance(value, float):
        if not np.isfinite(value):
            raise ValueError(f"Non-finite monetary value: {value}")
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_date(value) -> date:
    """Coerce a date, datetime, Timestamp or ISO string to a calendar date."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if hasattr(value, "date") and callable(value.date):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


def day_range(start: date, n_days: int) -> List[date]:
    """Consecutive calendar days starting at ``start`` (inclusive)."""
    return [d.date() for d in pd.date_range(pd.Timestamp(start), periods=n_days, freq="D")]


def days_between(start: date, end: date) -> int:
    return (to_date(end) - to_date(start)).days


def add_days(start: date, n: int) -> date:
    return to_date(start) + timedelta(days=int(n))
