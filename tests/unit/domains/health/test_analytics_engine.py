"""Tests for HealthAnalyticsEngine: orchestration, config and cancellation."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from journal_analytics.domains.health.domain_logic.analytics_engine import (
    AnalysisRequest,
    AnalyticsConfig,
    HealthAnalyticsEngine,
)
from journal_analytics.domains.health.domain_logic.analytics_models import (
    InsightPriority,
    InsightType,
)
from journal_analytics.domains.health.domain_logic.errors import (
    AnalysisCancelledError,
    InsufficientDataError,
    UnknownMetricError,
)
from journal_analytics.domains.health.domain_logic.metric_models import DateRange, MetricKind

TODAY = date(2026, 3, 1)
MONTH = DateRange.last_n_days(TODAY, 30)


@pytest.fixture
def mock_engine(mock_source, analytics_config, fixed_clock) -> HealthAnalyticsEngine:
    return HealthAnalyticsEngine(mock_source, analytics_config, clock=fixed_clock)


@pytest.fixture
def small_engine(small_journal, fixed_clock) -> HealthAnalyticsEngine:
    return HealthAnalyticsEngine(small_journal, clock=fixed_clock)


class TestRecompute:
    def test_full_report(self, mock_engine):
        report = mock_engine.recompute(AnalysisRequest(MONTH))
        assert report.period == MONTH
        assert {"mood", "pain_level", "energy_level", "symptom:1"} <= set(report.series)
        assert set(report.statistics) <= set(report.series)
        assert 0.0 <= report.health_score.overall_score <= 100.0
        assert report.correlations
        assert 0 < len(report.insights) <= 10
        assert report.provenance["data_source"] == "mock"

    def test_insights_are_ranked(self, mock_engine):
        report = mock_engine.recompute(AnalysisRequest(MONTH))
        keys = [(int(i.priority), i.confidence) for i in report.insights]
        assert keys == sorted(keys, reverse=True)

    def test_restricted_metrics(self, mock_engine):
        report = mock_engine.recompute(
            AnalysisRequest(MONTH, metric_ids=("mood", "pain_level")),
        )
        assert set(report.series) == {"mood", "pain_level"}
        assert [c.metric_pair for c in report.correlations] == [("mood", "pain_level")]
        assert set(report.health_score.per_metric_scores) <= {MetricKind.MOOD, MetricKind.PAIN_LEVEL}

    def test_request_cap(self, mock_engine):
        report = mock_engine.recompute(AnalysisRequest(MONTH, max_insights=2))
        assert len(report.insights) <= 2

    def test_configured_cap(self, mock_source, fixed_clock):
        engine = HealthAnalyticsEngine(mock_source, AnalyticsConfig(max_insights=1), clock=fixed_clock)
        assert len(engine.recompute(AnalysisRequest(MONTH)).insights) <= 1

    def test_unknown_metric(self, mock_engine):
        with pytest.raises(UnknownMetricError):
            mock_engine.recompute(AnalysisRequest(MONTH, metric_ids=("sleep_quality",)))

    def test_deterministic(self, mock_engine):
        request = AnalysisRequest(MONTH)
        assert mock_engine.recompute(request) == mock_engine.recompute(request)

    def test_empty_journal_period(self, mock_engine):
        long_ago = DateRange.last_n_days(TODAY - timedelta(days=400), 30)
        report = mock_engine.recompute(AnalysisRequest(long_ago))
        assert report.series == {}
        assert report.health_score.overall_score == 0.0
        assert [i.title for i in report.insights] == ["Start tracking more metrics"]


class TestReportFilters:
    def test_filters(self, mock_engine):
        report = mock_engine.recompute(AnalysisRequest(MONTH, max_insights=50))
        assert all(i.priority >= InsightPriority.HIGH for i in report.high_priority_insights())
        assert all(i.is_actionable for i in report.actionable_insights())
        assert all(i.type is InsightType.TREND for i in report.insights_of_type("trend"))
        assert len(report.insights_of_type(InsightType.WARNING)) == sum(
            1 for i in report.insights if i.type is InsightType.WARNING
        )


class TestCancellation:
    def test_cancel_between_stages(self, mock_engine):
        calls = []

        def should_cancel() -> bool:
            calls.append(1)
            return len(calls) >= 3

        with pytest.raises(AnalysisCancelledError):
            mock_engine.recompute(AnalysisRequest(MONTH), should_cancel=should_cancel)
        assert len(calls) == 3

    def test_never_cancelled(self, mock_engine):
        report = mock_engine.recompute(AnalysisRequest(MONTH), should_cancel=lambda: False)
        assert report.insights


class TestSingleOperations:
    def test_correlate(self, small_engine):
        result = small_engine.correlate("mood", "pain_level", MONTH)
        assert result.coefficient < -0.9
        assert result.direction_label == "Negative"
        assert result.matched_point_count == 5

    def test_correlate_short_period(self, small_engine):
        with pytest.raises(InsufficientDataError):
            small_engine.correlate("mood", "pain_level", DateRange.last_n_days(TODAY, 2))

    def test_configured_min_sample(self, small_journal):
        engine = HealthAnalyticsEngine(small_journal, AnalyticsConfig(min_sample_size=10))
        with pytest.raises(InsufficientDataError) as excinfo:
            engine.correlate("mood", "pain_level", MONTH)
        assert excinfo.value.required == 10

    def test_statistics(self, small_engine):
        stats = small_engine.statistics("mood", MONTH)
        assert stats.mean == pytest.approx(5.6)
        assert stats.count == 5

    def test_health_score_skips_weather(self, small_engine):
        score = small_engine.health_score(TODAY)
        assert MetricKind.MOOD in score.per_metric_scores
        assert MetricKind.WEATHER not in score.per_metric_scores
        assert 0.0 <= score.overall_score <= 100.0

    def test_streaks(self, small_engine):
        streaks = {s.metric_id: s for s in small_engine.streaks(MONTH)}
        assert streaks["mood"].current_streak == 3
        assert streaks["mood"].streak_kind == "good mood days"
        assert streaks["pain_level"].current_streak == 2
        assert "weather" not in streaks


class TestAnalyticsConfig:
    def test_weight_overrides(self):
        config = AnalyticsConfig(metric_weights={MetricKind.MOOD: 2.0})
        weights = config.resolved_weights()
        assert weights[MetricKind.MOOD] == 2.0
        assert weights[MetricKind.PAIN_LEVEL] == 1.0
        assert weights[MetricKind.WEATHER] == 0.0
        assert MetricKind.SYMPTOM not in weights

    def test_weights_change_the_score(self, small_journal):
        default = HealthAnalyticsEngine(small_journal).health_score(TODAY)
        pain_heavy = HealthAnalyticsEngine(
            small_journal, AnalyticsConfig(metric_weights={MetricKind.PAIN_LEVEL: 10.0}),
        ).health_score(TODAY)
        assert pain_heavy.overall_score != default.overall_score
