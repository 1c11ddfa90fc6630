"""Typed failures raised by the analytics engine.

Only the correlation path raises to its caller. Statistics, health score and
streak functions are total over their inputs; the insight pipeline catches
detector failures itself.
"""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for analytics engine errors."""


class InsufficientDataError(AnalyticsError):
    """Fewer aligned or valid data points than the analysis requires.

    Recoverable: the caller can ask the user to keep tracking or to pick
    different metrics.
    """

    def __init__(self, required: int, available: int, message: str | None = None) -> None:
        self.required = required
        self.available = available
        super().__init__(
            message
            or f"Need at least {required} matching days of data, found {available}"
        )


class CalculationError(AnalyticsError):
    """Degenerate numeric input (zero variance, division by zero)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class UnknownMetricError(AnalyticsError, ValueError):
    """A metric identifier that does not resolve to a known metric."""


class AnalysisCancelledError(AnalyticsError):
    """The caller abandoned an in-flight analysis run."""
