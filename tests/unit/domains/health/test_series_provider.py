"""Tests for MetricSeriesProvider: journal logs to metric series."""

from __future__ import annotations

from datetime import date

import pytest

from journal_analytics.domains.health.connectors.journal_models import DailyLog, SymptomRating
from journal_analytics.domains.health.connectors.providers import InMemoryJournalSource
from journal_analytics.domains.health.domain_logic.errors import UnknownMetricError
from journal_analytics.domains.health.domain_logic.metric_models import (
    DateRange,
    MetricKind,
)
from journal_analytics.domains.health.domain_logic.series_provider import MetricSeriesProvider

END = date(2026, 3, 1)
WEEK = DateRange.last_n_days(END, 7)


@pytest.fixture
def provider(small_journal) -> MetricSeriesProvider:
    return MetricSeriesProvider(small_journal)


class TestBuiltInSeries:
    def test_mood_values_oldest_first(self, provider):
        series = provider.build_series(MetricKind.MOOD, WEEK)
        assert series.values == [3.0, 4.0, 6.0, 7.0, 8.0]
        assert series.dates == sorted(series.dates)
        assert series.date_range == WEEK

    def test_accepts_kind_value_string(self, provider):
        assert provider.build_series("pain_level", WEEK).values == [8.0, 7.0, 5.0, 3.0, 2.0]

    def test_weather_is_encoded(self, provider):
        series = provider.build_series(MetricKind.WEATHER, WEEK)
        assert series.values == [1.0, 2.0, 4.0, 6.0, 6.0]

    def test_flare_day_is_binary(self, provider):
        assert provider.build_series(MetricKind.FLARE_DAY, WEEK).values == [1.0, 0.0, 0.0, 0.0, 0.0]

    def test_adherence_ignores_as_needed(self, provider):
        series = provider.build_series(MetricKind.MEDICATION_ADHERENCE, WEEK)
        assert series.values == [100.0, 50.0, 100.0, 50.0, 100.0]

    def test_counts(self, provider):
        assert provider.build_series(MetricKind.MEAL_COUNT, WEEK).values == [1.0, 2.0, 1.0, 2.0, 1.0]
        assert provider.build_series(MetricKind.ACTIVITY_COUNT, WEEK).values == [0.0, 0.0, 1.0, 1.0, 1.0]

    def test_range_limits_points(self, provider):
        window = DateRange(date(2026, 2, 28), END)
        assert provider.build_series(MetricKind.MOOD, window).values == [7.0, 8.0]

    def test_per_item_kind_needs_an_id(self, provider):
        with pytest.raises(UnknownMetricError):
            provider.build_series(MetricKind.SYMPTOM, WEEK)

    def test_unknown_kind(self, provider):
        with pytest.raises(UnknownMetricError):
            provider.build_series("sleep_quality", WEEK)


class TestMissingAndDuplicateDays:
    def test_unlogged_values_are_omitted(self):
        source = InMemoryJournalSource([
            DailyLog(date=date(2026, 3, 1), mood=5),
            DailyLog(date=date(2026, 3, 2), mood=None, pain_level=3),
            DailyLog(date=date(2026, 3, 4), mood=7),
        ])
        series = MetricSeriesProvider(source).build_series(
            MetricKind.MOOD, DateRange(date(2026, 3, 1), date(2026, 3, 4)),
        )
        assert series.dates == [date(2026, 3, 1), date(2026, 3, 4)]

    def test_latest_entry_for_a_day_wins(self):
        source = InMemoryJournalSource([
            DailyLog(date=date(2026, 3, 1), mood=2),
            DailyLog(date="2026-03-01T20:00:00", mood=9),
        ])
        series = MetricSeriesProvider(source).build_series(
            MetricKind.MOOD, DateRange.last_n_days(date(2026, 3, 1), 1),
        )
        assert series.values == [9.0]


class TestPerItemSeries:
    def test_symptom_series(self, provider):
        series = provider.build_symptom_series(1, WEEK)
        assert series.metric_id == "symptom:1"
        assert series.display_name == "Headache"
        assert series.values == [7.0, 6.0, 4.0, 2.0, 1.0]

    def test_binary_symptom_maps_to_zero_one(self):
        source = InMemoryJournalSource([
            DailyLog(date=date(2026, 3, 1), symptom_ratings=[SymptomRating(4, "Nausea", 1, is_binary=True)]),
            DailyLog(date=date(2026, 3, 2), symptom_ratings=[SymptomRating(4, "Nausea", 0, is_binary=True)]),
        ])
        series = MetricSeriesProvider(source).build_series_for_id(
            "symptom:4", DateRange(date(2026, 3, 1), date(2026, 3, 2)),
        )
        assert series.values == [1.0, 0.0]

    def test_medication_by_id(self, provider):
        series = provider.build_series_for_id("medication:Iron", WEEK)
        assert series.kind is MetricKind.MEDICATION
        assert series.values == [1.0, 0.0, 1.0, 0.0, 1.0]

    def test_activity_and_meal_by_id(self, provider):
        assert provider.build_series_for_id("activity:Walking", WEEK).values == [0.0, 0.0, 1.0, 1.0, 1.0]
        assert provider.build_series_for_id("meal:Salad", WEEK).values == [0.0, 1.0, 0.0, 1.0, 0.0]

    @pytest.mark.parametrize("metric_id", ["symptom:abc", "symptom:", "sleep:1", "bogus"])
    def test_bad_ids(self, provider, metric_id):
        with pytest.raises(UnknownMetricError):
            provider.build_series_for_id(metric_id, WEEK)


class TestAvailableMetrics:
    def test_lists_tracked_metrics(self, provider):
        available = provider.available_metric_ids(WEEK)
        assert available[:3] == ["mood", "pain_level", "energy_level"]
        assert "flare_day" in available
        assert "weather" in available
        assert "symptom:1" in available

    def test_flare_day_needs_a_flare(self):
        source = InMemoryJournalSource([DailyLog(date=date(2026, 3, 1), mood=5)])
        available = MetricSeriesProvider(source).available_metric_ids(
            DateRange.last_n_days(date(2026, 3, 1), 7),
        )
        assert "flare_day" not in available
        assert "mood" in available
        assert "pain_level" not in available
