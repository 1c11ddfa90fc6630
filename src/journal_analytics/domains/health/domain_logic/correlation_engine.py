"""Pearson correlation between two tracked metrics.

Series are aligned on shared calendar days only. Significance comes from the
t-statistic ``t = r * sqrt((n - 2) / (1 - r^2))`` against a Student-t
distribution with ``n - 2`` degrees of freedom (two-tailed).

Strength bands on ``|r|``:
    [0.0, 0.2) Very Weak   [0.2, 0.4) Weak   [0.4, 0.6) Moderate
    [0.6, 0.8) Strong      [0.8, 1.0] Very Strong
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, Mapping

from scipy import stats as sp_stats

from journal_analytics.domains.health.domain_logic.analytics_models import CorrelationResult
from journal_analytics.domains.health.domain_logic.errors import (
    AnalyticsError,
    CalculationError,
    InsufficientDataError,
)
from journal_analytics.domains.health.domain_logic.metric_models import (
    DateRange,
    MetricSeries,
)

logger = logging.getLogger(__name__)

# A t-statistic needs at least one degree of freedom
ABSOLUTE_MIN_SAMPLE_SIZE = 3

STRENGTH_BANDS: tuple[tuple[float, str], ...] = (
    (0.8, "Very Strong"),
    (0.6, "Strong"),
    (0.4, "Moderate"),
    (0.2, "Weak"),
    (0.0, "Very Weak"),
)

# Pairs worth checking by default (metric ids)
SUGGESTED_PAIRS: tuple[tuple[str, str], ...] = (
    ("mood", "pain_level"),
    ("energy_level", "mood"),
    ("pain_level", "energy_level"),
    ("medication_adherence", "mood"),
    ("medication_adherence", "pain_level"),
)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def align_series(a: MetricSeries, b: MetricSeries) -> list[tuple[date, float, float]]:
    """``(day, a_value, b_value)`` for every day present in both series."""
    b_values = b.value_by_date()
    return [(p.date, p.value, b_values[p.date]) for p in a.points if p.date in b_values]


def pearson_coefficient(xs: list[float], ys: list[float]) -> float:
    """Pearson product-moment coefficient, clamped to [-1, 1].

    Raises:
        CalculationError: If either side has zero variance.
    """
    if max(xs) == min(xs) or max(ys) == min(ys):
        raise CalculationError("One of the metrics did not vary over the matching days")

    n = len(xs)
    mean_x = math.fsum(xs) / n
    mean_y = math.fsum(ys) / n
    dx = [x - mean_x for x in xs]
    dy = [y - mean_y for y in ys]
    sxy = math.fsum(a * b for a, b in zip(dx, dy))
    sxx = math.fsum(a * a for a in dx)
    syy = math.fsum(b * b for b in dy)
    denominator = math.sqrt(sxx * syy)
    if denominator == 0:
        raise CalculationError("Correlation is undefined for constant data")
    return max(-1.0, min(1.0, sxy / denominator))


def two_tailed_p_value(r: float, n: int) -> float:
    """p-value of ``r`` over ``n`` pairs under the null of no correlation."""
    if abs(r) >= 1.0 or 1.0 - r * r <= 0.0:
        return 0.0
    df = n - 2
    t_stat = r * math.sqrt(df / (1.0 - r * r))
    p = 2.0 * float(sp_stats.t.sf(abs(t_stat), df))
    return max(0.0, min(1.0, p))


def strength_label(coefficient: float) -> str:
    magnitude = abs(coefficient)
    for lower, label in STRENGTH_BANDS:
        if magnitude >= lower:
            return label
    return STRENGTH_BANDS[-1][1]


def direction_label(coefficient: float) -> str:
    if coefficient > 0:
        return "Positive"
    if coefficient < 0:
        return "Negative"
    return "No"


def build_insight_sentences(
    primary_name: str,
    secondary_name: str,
    coefficient: float,
    p_value: float,
    matched: int,
    significance_level: float = 0.05,
) -> tuple[str, ...]:
    """Two or three plain-language sentences describing a correlation."""
    magnitude = abs(coefficient)
    strength = strength_label(coefficient).lower()
    sentences: list[str] = []

    if magnitude > 0.3:
        follow = "increase too" if coefficient > 0 else "decrease"
        sentences.append(f"When {primary_name} increases, {secondary_name} tends to {follow}.")
    else:
        sentences.append(
            f"There is no clear relationship between {primary_name} and {secondary_name} "
            f"in this period."
        )

    if p_value < significance_level:
        sentences.append(
            f"This {strength} correlation is statistically significant "
            f"across {matched} matching days."
        )
    else:
        sentences.append(
            f"Based on {matched} matching days, this {strength} correlation is not "
            f"statistically significant yet; more data may confirm or rule it out."
        )

    if magnitude > 0.4:
        if coefficient > 0:
            sentences.append(f"Improving {primary_name} may positively impact {secondary_name}.")
        else:
            sentences.append(f"Changes in {primary_name} may inversely affect {secondary_name}.")

    return tuple(sentences)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class CorrelationEngine:
    """Correlates metric series and ranks candidate pairs.

    Usage::

        engine = CorrelationEngine(min_sample_size=3)
        result = engine.calculate_correlation(mood_series, pain_series)
        best = engine.find_strongest(series_by_id, SUGGESTED_PAIRS)
    """

    def __init__(
        self,
        *,
        min_sample_size: int = ABSOLUTE_MIN_SAMPLE_SIZE,
        significance_level: float = 0.05,
    ) -> None:
        self._min_sample_size = max(ABSOLUTE_MIN_SAMPLE_SIZE, min_sample_size)
        self._significance_level = significance_level

    @property
    def min_sample_size(self) -> int:
        return self._min_sample_size

    def calculate_correlation(self, a: MetricSeries, b: MetricSeries) -> CorrelationResult:
        """Correlate two series over their shared days.

        Raises:
            InsufficientDataError: Fewer shared days than the minimum sample.
            CalculationError: Either series is constant over the shared days.
        """
        aligned = align_series(a, b)
        n = len(aligned)
        if n < self._min_sample_size:
            raise InsufficientDataError(required=self._min_sample_size, available=n)

        xs = [pair[1] for pair in aligned]
        ys = [pair[2] for pair in aligned]
        coefficient = pearson_coefficient(xs, ys)
        p_value = two_tailed_p_value(coefficient, n)

        logger.debug("Correlated %s vs %s: r=%.4f p=%.4f n=%d",
                     a.metric_id, b.metric_id, coefficient, p_value, n)

        return CorrelationResult(
            primary_metric=a.metric_id,
            secondary_metric=b.metric_id,
            coefficient=coefficient,
            p_value=p_value,
            matched_point_count=n,
            time_range=DateRange(aligned[0][0], aligned[-1][0]),
            strength_label=strength_label(coefficient),
            direction_label=direction_label(coefficient),
            insights=build_insight_sentences(
                a.display_name, b.display_name, coefficient, p_value, n,
                self._significance_level,
            ),
            primary_display_name=a.display_name,
            secondary_display_name=b.display_name,
            significance_level=self._significance_level,
            aligned_points=tuple(aligned),
        )

    def correlate_pairs(
        self,
        series_by_id: Mapping[str, MetricSeries],
        pairs: Iterable[tuple[str, str]] = SUGGESTED_PAIRS,
    ) -> list[CorrelationResult]:
        """Correlate every pair whose series are present, skipping failures."""
        results: list[CorrelationResult] = []
        for primary_id, secondary_id in pairs:
            primary = series_by_id.get(primary_id)
            secondary = series_by_id.get(secondary_id)
            if primary is None or secondary is None:
                continue
            try:
                results.append(self.calculate_correlation(primary, secondary))
            except AnalyticsError as exc:
                logger.debug("Skipping pair %s/%s: %s", primary_id, secondary_id, exc)
        return results

    def find_strongest(
        self,
        series_by_id: Mapping[str, MetricSeries],
        pairs: Iterable[tuple[str, str]] = SUGGESTED_PAIRS,
        *,
        require_significant: bool = False,
    ) -> CorrelationResult | None:
        """The pair with the largest ``|r|`` (first one wins ties)."""
        best: CorrelationResult | None = None
        for result in self.correlate_pairs(series_by_id, pairs):
            if require_significant and not result.is_significant:
                continue
            if best is None or abs(result.coefficient) > abs(best.coefficient):
                best = result
        return best
