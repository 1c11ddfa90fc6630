"""Summary statistics for a single metric series.

All functions are pure: same points in, same numbers out.
"""

from __future__ import annotations

import statistics
from typing import Sequence

from journal_analytics.domains.health.domain_logic.analytics_models import (
    ChartStatistics,
    TrendDirection,
)
from journal_analytics.domains.health.domain_logic.metric_models import MetricSeries

DEFAULT_TREND_THRESHOLD = 0.05


def split_halves(values: Sequence[float]) -> tuple[list[float], list[float]]:
    """First and last ``n // 2`` values; an odd series drops its middle value."""
    half = len(values) // 2
    if half == 0:
        return [], []
    return list(values[:half]), list(values[-half:])


def classify_change(
    before: float,
    after: float,
    threshold: float = DEFAULT_TREND_THRESHOLD,
) -> int:
    """Relative-threshold comparison shared by statistics and health score.

    Returns 1 when ``after`` exceeds ``before`` by more than ``threshold``
    (as a fraction of ``|before|``), -1 when it falls short by more than
    that, 0 otherwise. With ``before == 0`` any non-zero change counts.
    """
    margin = abs(before) * threshold
    diff = after - before
    if diff > margin:
        return 1
    if diff < -margin:
        return -1
    return 0


def percent_change(before: float, after: float) -> float:
    if before == 0:
        return 0.0
    return (after - before) / before * 100.0


def calculate_statistics(
    series: MetricSeries,
    *,
    trend_threshold: float = DEFAULT_TREND_THRESHOLD,
) -> ChartStatistics:
    """Compute mean/min/max/median, trend direction and half-over-half change.

    Empty series produce all-zero statistics with a stable trend.
    """
    values = series.values
    if not values:
        return ChartStatistics(
            mean=0.0,
            min=0.0,
            max=0.0,
            trend_direction=TrendDirection.STABLE,
            change_percentage=0.0,
            median=0.0,
            count=0,
        )

    first, second = split_halves(values)
    if first:
        first_avg = statistics.fmean(first)
        second_avg = statistics.fmean(second)
        direction = {
            1: TrendDirection.INCREASING,
            -1: TrendDirection.DECREASING,
            0: TrendDirection.STABLE,
        }[classify_change(first_avg, second_avg, trend_threshold)]
        change = percent_change(first_avg, second_avg)
    else:
        direction = TrendDirection.STABLE
        change = 0.0

    return ChartStatistics(
        mean=statistics.fmean(values),
        min=min(values),
        max=max(values),
        trend_direction=direction,
        change_percentage=change,
        median=statistics.median(values),
        count=len(values),
    )
