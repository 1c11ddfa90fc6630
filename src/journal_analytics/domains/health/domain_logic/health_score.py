"""Weighted 0-100 health score over the tracked metrics.

Each metric's recent-window average is normalized through the metric catalog
(ratings scale linearly, inverse metrics are flipped first, percentages pass
through, counts scale against a daily target). Metrics without recent data
drop out of both numerator and denominator, so untracked metrics never pull
the score down.
"""

from __future__ import annotations

import logging
import statistics
from datetime import date, datetime, timezone
from typing import Callable, Mapping

from journal_analytics.domains.health.domain_logic.analytics_models import (
    HealthScore,
    ScoreComponent,
    ScoreTrend,
)
from journal_analytics.domains.health.domain_logic.metric_models import (
    DateRange,
    MetricKind,
    MetricSeries,
    get_metric_spec,
)
from journal_analytics.domains.health.domain_logic.statistics_calculator import (
    DEFAULT_TREND_THRESHOLD,
    classify_change,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7

_TREND_BY_SIGN = {
    1: ScoreTrend.IMPROVING,
    -1: ScoreTrend.DECLINING,
    0: ScoreTrend.STABLE,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _latest_day(series_by_metric: Mapping[MetricKind, MetricSeries]) -> date | None:
    days = [s.points[-1].date for s in series_by_metric.values() if s.points]
    return max(days) if days else None


class HealthScoreEngine:
    """Computes the overall health score and its trend.

    Usage::

        engine = HealthScoreEngine(window_days=7)
        score = engine.calculate_health_score(
            {MetricKind.MOOD: mood, MetricKind.PAIN_LEVEL: pain},
            {MetricKind.MOOD: 1.0, MetricKind.PAIN_LEVEL: 1.0},
        )
    """

    def __init__(
        self,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
        trend_threshold: float = DEFAULT_TREND_THRESHOLD,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if window_days < 1:
            raise ValueError("window_days must be >= 1")
        self._window_days = window_days
        self._trend_threshold = trend_threshold
        self._clock = clock

    def calculate_health_score(
        self,
        series_by_metric: Mapping[MetricKind, MetricSeries],
        weights: Mapping[MetricKind, float] | None = None,
        *,
        as_of: date | None = None,
    ) -> HealthScore:
        """Score the window ending at ``as_of`` (default: latest logged day).

        Never raises; empty input yields a zero, stable score.
        """
        resolved_weights = {MetricKind(k): float(w) for k, w in (weights or {}).items()}
        by_kind = {MetricKind(k): s for k, s in series_by_metric.items()}

        end = as_of or _latest_day(by_kind)
        if end is None:
            return HealthScore(
                overall_score=0.0,
                per_metric_scores={},
                trend=ScoreTrend.STABLE,
                computed_at=self._clock(),
            )

        window = DateRange.last_n_days(end, self._window_days)
        current, components = self._aggregate(by_kind, resolved_weights, window)
        previous, _ = self._aggregate(by_kind, resolved_weights, window.shifted(-self._window_days))

        if current is None or previous is None:
            trend = ScoreTrend.STABLE
        else:
            trend = _TREND_BY_SIGN[classify_change(previous, current, self._trend_threshold)]

        logger.debug("Health score %s over %s..%s from %d metrics (previous %s)",
                     current, window.start, window.end, len(components), previous)

        return HealthScore(
            overall_score=current if current is not None else 0.0,
            per_metric_scores={c.metric: c.score for c in components},
            trend=trend,
            computed_at=self._clock(),
            components=tuple(components),
            previous_score=previous,
            window=window,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _aggregate(
        self,
        series_by_metric: Mapping[MetricKind, MetricSeries],
        weights: Mapping[MetricKind, float],
        window: DateRange,
    ) -> tuple[float | None, list[ScoreComponent]]:
        """Weighted average of per-metric scores inside ``window``."""
        components: list[ScoreComponent] = []
        for kind, series in series_by_metric.items():
            spec = get_metric_spec(kind)
            values = [p.value for p in series.points if window.contains(p.date)]
            if not values:
                continue
            score = spec.normalize(statistics.fmean(values))
            if score is None:
                continue
            weight = weights.get(kind, spec.default_weight)
            if weight <= 0:
                continue
            components.append(ScoreComponent(
                metric=kind,
                name=series.display_name or spec.display_name,
                score=score,
                weight=weight,
            ))

        if not components:
            return None, components

        total_weight = sum(c.weight for c in components)
        overall = sum(c.score * c.weight for c in components) / total_weight
        return max(0.0, min(100.0, overall)), components
