"""
Error taxonomy shared by every package.

All engine errors derive from ValueError so callers that already guard input
problems with ``except ValueError`` keep working.
"""

from __future__ import annotations

from typing import Optional


class DecisionEngineError(ValueError):
    """Base class for all engine errors."""


class InvalidParameters(DecisionEngineError):
    """Malformed, missing or out-of-range input. Never retried."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        guidance: Optional[str] = None,
    ):
        self.field = field
        self.guidance = guidance
        parts = [message]
        if field:
            parts.append(f"(field: {field})")
        if guidance:
            parts.append(f"— {guidance}")
        super().__init__(" ".join(parts))


class InsufficientData(DecisionEngineError):
    """Forecast or history too short to compute from."""


class ProviderUnavailable(DecisionEngineError):
    """The forecast provider failed or refused the call."""


class ProviderTimeout(ProviderUnavailable):
    """The forecast provider did not answer within the allotted wait."""


class InternalInvariantViolation(DecisionEngineError):
    """A computed result broke one of its own invariants."""


class SimulationCancelled(DecisionEngineError):
    """The caller cancelled the simulation while the forecast was pending."""
