"""Pull-based orchestration of the analytics components.

``HealthAnalyticsEngine`` owns no mutable state beyond its collaborators:
every call reads the data source afresh and returns new value objects, so
independent calls may run concurrently (the MCP tools run them in worker
threads). Long runs check an optional ``should_cancel`` callable between
stages and abandon the run with ``AnalysisCancelledError``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Mapping

from journal_analytics.domains.health.connectors import JournalDataSource
from journal_analytics.domains.health.domain_logic.analytics_models import (
    ChartStatistics,
    CorrelationResult,
    HealthInsight,
    HealthScore,
    InsightContext,
    InsightPriority,
    InsightType,
    StreakResult,
)
from journal_analytics.domains.health.domain_logic.correlation_engine import (
    SUGGESTED_PAIRS,
    CorrelationEngine,
)
from journal_analytics.domains.health.domain_logic.errors import AnalysisCancelledError
from journal_analytics.domains.health.domain_logic.health_score import HealthScoreEngine
from journal_analytics.domains.health.domain_logic.insight_engine import (
    InsightGenerationEngine,
    InsightThresholds,
)
from journal_analytics.domains.health.domain_logic.metric_models import (
    DateRange,
    MetricKind,
    MetricSeries,
    get_metric_spec,
)
from journal_analytics.domains.health.domain_logic.series_provider import MetricSeriesProvider
from journal_analytics.domains.health.domain_logic.statistics_calculator import (
    calculate_statistics,
)
from journal_analytics.domains.health.domain_logic.streak_engine import streak_from_series

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Configuration, request and report
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnalyticsConfig:
    """Caller-supplied analytics knobs. Built from ``Settings`` by the server."""

    min_sample_size: int = 3
    significance_level: float = 0.05
    trend_threshold: float = 0.05
    max_insights: int = 10
    score_window_days: int = 7
    streak_grace_days: int = 1
    metric_weights: Mapping[MetricKind, float] = field(default_factory=dict)
    correlation_pairs: tuple[tuple[str, str], ...] = SUGGESTED_PAIRS
    insight_thresholds: InsightThresholds = field(default_factory=InsightThresholds)

    def weight_for(self, kind: MetricKind) -> float:
        return self.metric_weights.get(kind, get_metric_spec(kind).default_weight)

    def resolved_weights(self) -> dict[MetricKind, float]:
        """Catalog defaults overridden by configured weights."""
        return {kind: self.weight_for(kind) for kind in MetricKind if not kind.is_per_item}


@dataclass(frozen=True)
class AnalysisRequest:
    """One unit of analysis work.

    ``metric_ids`` defaults to every metric with data in ``period``;
    ``as_of`` defaults to ``period.end``.
    """

    period: DateRange
    metric_ids: tuple[str, ...] | None = None
    as_of: date | None = None
    max_insights: int | None = None
    correlation_pairs: tuple[tuple[str, str], ...] | None = None

    @property
    def effective_as_of(self) -> date:
        return self.as_of or self.period.end


@dataclass(frozen=True)
class AnalysisReport:
    """Everything one ``recompute`` call produced."""

    request: AnalysisRequest
    series: dict[str, MetricSeries]
    statistics: dict[str, ChartStatistics]
    correlations: tuple[CorrelationResult, ...]
    health_score: HealthScore
    streaks: tuple[StreakResult, ...]
    insights: tuple[HealthInsight, ...]
    provenance: dict[str, str] = field(default_factory=dict)

    @property
    def period(self) -> DateRange:
        return self.request.period

    def insights_of_type(self, insight_type: InsightType | str) -> list[HealthInsight]:
        wanted = InsightType(insight_type)
        return [i for i in self.insights if i.type is wanted]

    def high_priority_insights(self) -> list[HealthInsight]:
        return [i for i in self.insights if i.priority >= InsightPriority.HIGH]

    def actionable_insights(self) -> list[HealthInsight]:
        return [i for i in self.insights if i.is_actionable]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class HealthAnalyticsEngine:
    """Wires a journal data source to the analytics components.

    Usage::

        engine = HealthAnalyticsEngine(MockJournalSource(date.today()))
        report = engine.recompute(AnalysisRequest(DateRange.last_n_days(date.today(), 30)))
        for insight in report.insights:
            print(insight.title)
    """

    def __init__(
        self,
        source: JournalDataSource,
        config: AnalyticsConfig | None = None,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._source = source
        self._config = config or AnalyticsConfig()
        self._provider = MetricSeriesProvider(source)
        self._correlation = CorrelationEngine(
            min_sample_size=self._config.min_sample_size,
            significance_level=self._config.significance_level,
        )
        self._scores = HealthScoreEngine(
            window_days=self._config.score_window_days,
            trend_threshold=self._config.trend_threshold,
            clock=clock,
        )
        self._insights = InsightGenerationEngine(
            max_insights=self._config.max_insights,
            thresholds=self._config.insight_thresholds,
            clock=clock,
        )

    @property
    def source(self) -> JournalDataSource:
        return self._source

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    @property
    def provider(self) -> MetricSeriesProvider:
        return self._provider

    # ------------------------------------------------------------------
    # Single-component operations
    # ------------------------------------------------------------------

    def available_metrics(self, period: DateRange) -> list[str]:
        return self._provider.available_metric_ids(period)

    def series(self, metric_id: str, period: DateRange) -> MetricSeries:
        return self._provider.build_series_for_id(metric_id, period)

    def statistics(self, metric_id: str, period: DateRange) -> ChartStatistics:
        return calculate_statistics(
            self.series(metric_id, period),
            trend_threshold=self._config.trend_threshold,
        )

    def correlate(self, primary_id: str, secondary_id: str, period: DateRange) -> CorrelationResult:
        """Correlate two metrics. Raises the correlation engine's typed errors."""
        return self._correlation.calculate_correlation(
            self.series(primary_id, period),
            self.series(secondary_id, period),
        )

    def health_score(self, as_of: date, kinds: list[MetricKind] | None = None) -> HealthScore:
        """Score the window ending ``as_of`` against the window before it."""
        if kinds is None:
            history = DateRange.last_n_days(as_of, self._config.score_window_days * 2)
            kinds = [
                MetricKind(metric_id) for metric_id in self.available_metrics(history)
                if ":" not in metric_id
            ]
        return self._scores.calculate_health_score(
            self._score_series(kinds, as_of),
            self._config.resolved_weights(),
            as_of=as_of,
        )

    def streaks(self, period: DateRange, as_of: date | None = None) -> list[StreakResult]:
        as_of = as_of or period.end
        results = []
        for metric_id in self.available_metrics(period):
            streak = streak_from_series(
                self.series(metric_id, period), as_of,
                grace_days=self._config.streak_grace_days,
            )
            if streak is not None:
                results.append(streak)
        return results

    # ------------------------------------------------------------------
    # Full analysis
    # ------------------------------------------------------------------

    def recompute(
        self,
        request: AnalysisRequest,
        *,
        should_cancel: Callable[[], bool] | None = None,
    ) -> AnalysisReport:
        """Run every component for ``request`` and return a fresh report.

        Raises:
            UnknownMetricError: A requested metric id does not resolve.
            AnalysisCancelledError: ``should_cancel`` returned True between stages.
        """
        started = time.perf_counter()
        period = request.period
        as_of = request.effective_as_of

        def checkpoint(stage: str) -> None:
            if should_cancel is not None and should_cancel():
                logger.info("Analysis for %s..%s cancelled before %s",
                            period.start, period.end, stage)
                raise AnalysisCancelledError(f"Analysis cancelled before {stage}")

        checkpoint("series")
        metric_ids = list(request.metric_ids or self.available_metrics(period))
        series = {metric_id: self.series(metric_id, period) for metric_id in metric_ids}

        checkpoint("statistics")
        statistics = {
            metric_id: calculate_statistics(s, trend_threshold=self._config.trend_threshold)
            for metric_id, s in series.items()
            if not s.is_empty
        }

        checkpoint("correlations")
        pairs = request.correlation_pairs or self._config.correlation_pairs
        correlations = tuple(self._correlation.correlate_pairs(series, pairs))

        checkpoint("health score")
        score_kinds = [s.kind for s in series.values() if not s.kind.is_per_item]
        health_score = self.health_score(as_of, score_kinds)

        checkpoint("streaks")
        streaks = tuple(
            streak for streak in (
                streak_from_series(s, as_of, grace_days=self._config.streak_grace_days)
                for s in series.values()
            )
            if streak is not None
        )

        checkpoint("insights")
        context = InsightContext(
            period=period,
            series=series,
            statistics=statistics,
            correlations=correlations,
            health_score=health_score,
            streaks=streaks,
        )
        insights = tuple(self._insights.generate_insights(context, request.max_insights))

        logger.debug("Analysis of %d metrics over %s..%s took %.1f ms",
                     len(series), period.start, period.end,
                     (time.perf_counter() - started) * 1000)

        return AnalysisReport(
            request=request,
            series=series,
            statistics=statistics,
            correlations=correlations,
            health_score=health_score,
            streaks=streaks,
            insights=insights,
            provenance=self._source.get_provenance(),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _score_series(self, kinds: list[MetricKind], as_of: date) -> dict[MetricKind, MetricSeries]:
        """Series covering the score window and the one before it."""
        history = DateRange.last_n_days(as_of, self._config.score_window_days * 2)
        return {
            kind: self._provider.build_series(kind, history)
            for kind in dict.fromkeys(kinds)
            if not kind.is_per_item
        }
