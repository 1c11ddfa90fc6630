"""Consecutive-day streaks over daily yes/no outcomes.

A missing calendar day breaks a run exactly like a ``False`` day does.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from journal_analytics.domains.health.domain_logic.analytics_models import StreakResult
from journal_analytics.domains.health.domain_logic.metric_models import MetricSeries

DEFAULT_GRACE_DAYS = 1

_ONE_DAY = timedelta(days=1)


def calculate_streak(
    daily_booleans: Iterable[tuple[date, bool]],
    as_of: date,
    *,
    streak_kind: str = "good days",
    grace_days: int = DEFAULT_GRACE_DAYS,
    metric_id: str | None = None,
) -> StreakResult:
    """Current and longest runs of ``True`` days up to ``as_of``.

    The current streak ends on the latest logged day on or before ``as_of``.
    If that day is more than ``grace_days`` before ``as_of`` (the user
    stopped logging) there is no current streak. When the same day appears
    twice, the later entry wins.
    """
    by_day: dict[date, bool] = {}
    for day, flag in daily_booleans:
        if day <= as_of:
            by_day[day] = bool(flag)

    if not by_day:
        return StreakResult(
            streak_kind=streak_kind,
            current_streak=0,
            longest_streak=0,
            is_active=False,
            metric_id=metric_id,
        )

    days = sorted(by_day)

    longest = 0
    run = 0
    prev: date | None = None
    for day in days:
        if not by_day[day]:
            run = 0
        elif prev is not None and day - prev == _ONE_DAY and by_day[prev]:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        prev = day

    anchor = days[-1]
    current = 0
    if (as_of - anchor).days <= grace_days:
        cursor = anchor
        while by_day.get(cursor):
            current += 1
            cursor -= _ONE_DAY

    return StreakResult(
        streak_kind=streak_kind,
        current_streak=current,
        longest_streak=longest,
        is_active=current > 0,
        metric_id=metric_id,
        last_day=anchor,
    )


def streak_from_series(
    series: MetricSeries,
    as_of: date,
    *,
    grace_days: int = DEFAULT_GRACE_DAYS,
) -> StreakResult | None:
    """Good-day streak for a metric, or ``None`` if the metric has no good-day rule."""
    spec = series.spec
    if spec.good_threshold is None:
        return None
    return calculate_streak(
        ((p.date, spec.is_good(p.value)) for p in series.points),
        as_of,
        streak_kind=spec.streak_label,
        grace_days=grace_days,
        metric_id=series.metric_id,
    )
