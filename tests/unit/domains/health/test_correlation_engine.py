"""Tests for the CorrelationEngine: Pearson r, p-values and labels."""

from __future__ import annotations

import random
from datetime import date, timedelta

import pytest
from scipy import stats as sp_stats

from journal_analytics.domains.health.domain_logic.correlation_engine import (
    SUGGESTED_PAIRS,
    CorrelationEngine,
    direction_label,
    strength_label,
)
from journal_analytics.domains.health.domain_logic.errors import (
    CalculationError,
    InsufficientDataError,
)
from journal_analytics.domains.health.domain_logic.metric_models import MetricKind, MetricSeries

START = date(2026, 2, 1)


def _series(
    values: list[float],
    kind: MetricKind = MetricKind.MOOD,
    *,
    offset: int = 0,
) -> MetricSeries:
    return MetricSeries.from_values(
        kind, [(START + timedelta(days=offset + i), v) for i, v in enumerate(values)],
    )


@pytest.fixture
def engine() -> CorrelationEngine:
    return CorrelationEngine()


class TestPerfectCorrelation:
    def test_linear_series(self, engine):
        result = engine.calculate_correlation(
            _series([1, 2, 3, 4, 5]),
            _series([2, 4, 6, 8, 10], MetricKind.ENERGY_LEVEL),
        )
        assert result.coefficient == 1.0
        assert result.strength_label == "Very Strong"
        assert result.direction_label == "Positive"
        assert result.p_value == 0.0
        assert result.matched_point_count == 5
        assert result.is_significant

    def test_inverse_series(self, engine):
        result = engine.calculate_correlation(
            _series([1, 2, 3, 4, 5]),
            _series([9, 7, 5, 3, 1], MetricKind.PAIN_LEVEL),
        )
        assert result.coefficient == -1.0
        assert result.direction_label == "Negative"


class TestProperties:
    def test_symmetry(self, engine):
        rng = random.Random(3)
        a = _series([rng.randint(0, 10) for _ in range(25)])
        b = _series([rng.randint(0, 10) for _ in range(25)], MetricKind.PAIN_LEVEL)
        assert (engine.calculate_correlation(a, b).coefficient
                == engine.calculate_correlation(b, a).coefficient)

    def test_bounds(self, engine):
        rng = random.Random(11)
        for _ in range(20):
            a = _series([rng.uniform(0, 10) for _ in range(12)])
            b = _series([rng.uniform(0, 10) for _ in range(12)], MetricKind.ENERGY_LEVEL)
            result = engine.calculate_correlation(a, b)
            assert -1.0 <= result.coefficient <= 1.0
            assert 0.0 <= result.p_value <= 1.0

    def test_matches_scipy(self, engine):
        xs = [3, 5, 4, 7, 6, 8, 5, 9]
        ys = [7, 6, 6, 4, 5, 3, 6, 2]
        result = engine.calculate_correlation(_series(xs), _series(ys, MetricKind.PAIN_LEVEL))
        expected_r, expected_p = sp_stats.pearsonr(xs, ys)
        assert result.coefficient == pytest.approx(expected_r)
        assert result.p_value == pytest.approx(expected_p)

    def test_deterministic(self, engine):
        a = _series([3, 5, 4, 7, 6])
        b = _series([2, 2, 5, 4, 6], MetricKind.ENERGY_LEVEL)
        assert engine.calculate_correlation(a, b) == engine.calculate_correlation(a, b)


class TestAlignment:
    def test_only_shared_days_count(self, engine):
        a = _series([1, 2, 3, 4, 5, 6])
        b = _series([2, 4, 7, 8], MetricKind.ENERGY_LEVEL, offset=2)
        result = engine.calculate_correlation(a, b)
        assert result.matched_point_count == 4
        assert result.time_range.start == START + timedelta(days=2)
        assert result.time_range.end == START + timedelta(days=5)
        assert [p[1] for p in result.aligned_points] == [3.0, 4.0, 5.0, 6.0]

    def test_disjoint_series(self, engine):
        with pytest.raises(InsufficientDataError) as excinfo:
            engine.calculate_correlation(_series([1, 2, 3]), _series([1, 2, 3], offset=10))
        assert excinfo.value.available == 0


class TestThresholds:
    @pytest.mark.parametrize("n", [0, 1, 2])
    def test_fewer_than_three_points_raise(self, engine, n):
        with pytest.raises(InsufficientDataError) as excinfo:
            engine.calculate_correlation(
                _series(list(range(n))),
                _series([2 * v for v in range(n)], MetricKind.ENERGY_LEVEL),
            )
        assert excinfo.value.required == 3
        assert excinfo.value.available == n

    def test_three_points_succeed(self, engine):
        result = engine.calculate_correlation(
            _series([1, 2, 4]), _series([2, 3, 3], MetricKind.ENERGY_LEVEL),
        )
        assert result.matched_point_count == 3

    def test_configured_minimum(self):
        engine = CorrelationEngine(min_sample_size=5)
        with pytest.raises(InsufficientDataError):
            engine.calculate_correlation(
                _series([1, 2, 3, 4]), _series([4, 3, 2, 1], MetricKind.PAIN_LEVEL),
            )

    def test_minimum_never_below_three(self):
        assert CorrelationEngine(min_sample_size=1).min_sample_size == 3

    def test_zero_variance(self, engine):
        with pytest.raises(CalculationError):
            engine.calculate_correlation(
                _series([5, 5, 5, 5]), _series([1, 2, 3, 4], MetricKind.PAIN_LEVEL),
            )


class TestLabels:
    @pytest.mark.parametrize("r,label", [
        (0.0, "Very Weak"),
        (0.19, "Very Weak"),
        (0.2, "Weak"),
        (-0.45, "Moderate"),
        (0.6, "Strong"),
        (-0.8, "Very Strong"),
        (1.0, "Very Strong"),
    ])
    def test_strength_bands(self, r, label):
        assert strength_label(r) == label

    def test_direction(self):
        assert direction_label(0.3) == "Positive"
        assert direction_label(-0.3) == "Negative"
        assert direction_label(0.0) == "No"


class TestInsightSentences:
    def test_negative_relationship(self, engine):
        result = engine.calculate_correlation(
            _series([3, 4, 6, 7, 8]),
            _series([8, 7, 5, 3, 2], MetricKind.PAIN_LEVEL),
        )
        assert 2 <= len(result.insights) <= 3
        assert result.insights[0] == "When Mood increases, Pain Level tends to decrease."
        assert "statistically significant" in result.insights[1]

    def test_weak_relationship(self, engine):
        result = engine.calculate_correlation(
            _series([1, 2, 3, 4, 5, 6]),
            _series([3, 1, 4, 1, 5, 2], MetricKind.ENERGY_LEVEL),
        )
        assert abs(result.coefficient) <= 0.3
        assert result.insights[0].startswith("There is no clear relationship")
        assert len(result.insights) == 2


class TestFindStrongest:
    def test_picks_largest_magnitude(self, engine):
        series = {
            "mood": _series([3, 4, 6, 7, 8]),
            "pain_level": _series([8, 7, 5, 3, 2], MetricKind.PAIN_LEVEL),
            "energy_level": _series([5, 4, 6, 5, 6], MetricKind.ENERGY_LEVEL),
        }
        best = engine.find_strongest(series, SUGGESTED_PAIRS)
        assert best is not None
        assert best.metric_pair == ("mood", "pain_level")

    def test_skips_failing_and_missing_pairs(self, engine):
        series = {
            "mood": _series([5, 5, 5, 5]),
            "pain_level": _series([1, 2, 3, 4], MetricKind.PAIN_LEVEL),
        }
        assert engine.find_strongest(series) is None
        assert engine.correlate_pairs(series) == []
