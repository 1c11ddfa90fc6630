"""Rule-based insight generation over one analysis context.

Detectors run in a fixed order (trend, achievement, pattern, correlation,
warning, recommendation). Each one independently returns zero or more
candidate insights; the recommendation detector also sees the candidates
produced before it. Candidates are then deduplicated per type, ranked by
priority and confidence, and truncated.

Confidence values are heuristics in [0, 1] built from sample size, effect
size and (for correlations) significance. They are not probabilities.
"""

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from journal_analytics.domains.health.domain_logic.analytics_models import (
    HealthInsight,
    InsightContext,
    InsightPriority,
    InsightType,
    ScoreTrend,
    StreakResult,
    TrendDirection,
)
from journal_analytics.domains.health.domain_logic.metric_models import (
    DateRange,
    MetricSeries,
)
from journal_analytics.domains.health.domain_logic.streak_engine import streak_from_series

logger = logging.getLogger(__name__)

DEFAULT_MAX_INSIGHTS = 10

_WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class InsightThresholds:
    """Tunable cut-offs for the insight detectors."""

    # Trend
    trend_change_percent: float = 10.0
    min_trend_points: int = 5
    # Achievement
    achievement_min_streak: int = 3
    recent_window_days: int = 7
    personal_best_min_history: int = 7
    # Pattern
    pattern_min_points: int = 14
    pattern_min_weekdays: int = 5
    pattern_min_spread: float = 0.2
    weekend_min_difference: float = 0.15
    weak_pattern_confidence: float = 0.6
    # Correlation
    correlation_min_coefficient: float = 0.4
    correlation_strong_coefficient: float = 0.7
    # Warning
    worsening_run: int = 3
    severe_change_percent: float = 30.0
    severe_score_drop: float = 15.0
    # Recommendation
    min_tracked_metrics: int = 3
    # Sample size that earns full sample credit in confidence scores
    full_confidence_sample: int = 30


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


def _confidence(
    sample_size: int,
    effect: float,
    significance: float | None = None,
    *,
    full_sample: int = 30,
) -> float:
    """Blend sample size, effect size and significance into [0, 1]."""
    sample = _clamp_unit(sample_size / full_sample) if full_sample > 0 else 1.0
    effect = _clamp_unit(effect)
    if significance is None:
        value = 0.5 * sample + 0.5 * effect
    else:
        value = 0.35 * sample + 0.35 * effect + 0.3 * _clamp_unit(significance)
    return round(_clamp_unit(value), 4)


def _is_scored(series: MetricSeries) -> bool:
    """Metrics with a health polarity (weather has none)."""
    return series.spec.normalizer is not None


def _is_graded(series: MetricSeries) -> bool:
    return _is_scored(series) and series.spec.data_type != "binary"


def _streak_span(streak: StreakResult) -> DateRange | None:
    """Days covered by the current run, when the streak knows its last day."""
    if streak.last_day is None or streak.current_streak < 1:
        return None
    return DateRange(streak.last_day - timedelta(days=streak.current_streak - 1), streak.last_day)


class InsightGenerationEngine:
    """Turns series, statistics, correlations, score and streaks into insights.

    Usage::

        engine = InsightGenerationEngine(max_insights=5)
        insights = engine.generate_insights(context)
        top_three = engine.generate_insights(context, max_count=3)
    """

    def __init__(
        self,
        *,
        max_insights: int = DEFAULT_MAX_INSIGHTS,
        thresholds: InsightThresholds | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._max_insights = max_insights
        self._t = thresholds or InsightThresholds()
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate_insights(
        self,
        context: InsightContext,
        max_count: int | None = None,
    ) -> list[HealthInsight]:
        """Run every detector and return a fresh, ranked, capped list."""
        limit = self._max_insights if max_count is None else max_count
        if limit <= 0:
            return []

        now = self._clock()
        detectors: list[tuple[str, Callable[..., list[HealthInsight]]]] = [
            ("trend", self._detect_trends),
            ("achievement", self._detect_achievements),
            ("pattern", self._detect_patterns),
            ("correlation", self._detect_correlations),
            ("warning", self._detect_warnings),
        ]

        candidates: list[HealthInsight] = []
        for name, detector in detectors:
            candidates.extend(self._run_detector(name, detector, context, now))
        candidates.extend(self._run_detector(
            "recommendation", self._detect_recommendations, context, now, list(candidates),
        ))

        ranked = sorted(
            self._deduplicate(candidates),
            key=lambda insight: (-int(insight.priority), -insight.confidence),
        )
        logger.debug("Generated %d insight candidates, returning %d",
                     len(candidates), min(limit, len(ranked)))
        return ranked[:limit]

    # ------------------------------------------------------------------
    # Pipeline helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _run_detector(name, detector, context, now, *args) -> list[HealthInsight]:
        try:
            return list(detector(context, now, *args))
        except Exception:
            logger.warning("Insight detector %r failed; skipping it", name, exc_info=True)
            return []

    @staticmethod
    def _deduplicate(candidates: list[HealthInsight]) -> list[HealthInsight]:
        """Keep the most confident insight per (type, subject, period).

        The subject is the metric set, or the title for insights that name no
        metric (caller-supplied streaks, the tracking recommendation).
        """
        best: dict[tuple, HealthInsight] = {}
        for insight in candidates:
            subject = frozenset(insight.relevant_metrics) or insight.title
            key = (insight.type, subject, insight.relevance_period)
            current = best.get(key)
            if current is None or insight.confidence > current.confidence:
                best[key] = insight
        return list(best.values())

    def _recent_window(self, period: DateRange) -> DateRange:
        if period.days <= self._t.recent_window_days:
            return period
        return DateRange.last_n_days(period.end, self._t.recent_window_days)

    # ------------------------------------------------------------------
    # Detectors
    # ------------------------------------------------------------------

    def _detect_trends(self, context: InsightContext, now: datetime) -> list[HealthInsight]:
        insights: list[HealthInsight] = []
        for metric_id, stats in context.statistics.items():
            series = context.series.get(metric_id)
            if series is None or not _is_graded(series):
                continue
            if stats.trend_direction is TrendDirection.STABLE:
                continue
            if stats.count < self._t.min_trend_points:
                continue
            change = stats.change_percentage
            if abs(change) <= self._t.trend_change_percent:
                continue

            name = series.display_name
            improving = series.spec.is_improvement(change)
            verb = "risen" if change > 0 else "fallen"
            insights.append(HealthInsight(
                type=InsightType.TREND,
                priority=InsightPriority.MEDIUM if improving else InsightPriority.HIGH,
                title=f"{name} is {'improving' if improving else 'worsening'}",
                description=(
                    f"Your {name.lower()} has {verb} {abs(change):.0f}% in the second half "
                    f"of this period compared with the first half."
                ),
                confidence=_confidence(stats.count, abs(change) / 50.0,
                                       full_sample=self._t.full_confidence_sample),
                relevant_metrics=(metric_id,),
                relevance_period=context.period,
                generated_at=now,
                actionable_text=(
                    "Keep up what you have been doing." if improving
                    else "Consider reviewing your recent activities for possible triggers."
                ),
            ))
        return insights

    def _detect_achievements(self, context: InsightContext, now: datetime) -> list[HealthInsight]:
        insights: list[HealthInsight] = []
        recent = self._recent_window(context.period)

        streaks: tuple[StreakResult, ...] = context.streaks or tuple(
            s for s in (streak_from_series(series, context.period.end)
                        for series in context.series.values() if _is_scored(series))
            if s is not None
        )
        for streak in streaks:
            if not streak.is_active or streak.current_streak < self._t.achievement_min_streak:
                continue
            days = streak.current_streak
            insights.append(HealthInsight(
                type=InsightType.ACHIEVEMENT,
                priority=InsightPriority.MEDIUM,
                title=f"{days}-day streak of {streak.streak_kind}",
                description=f"You have logged {days} {streak.streak_kind} in a row.",
                confidence=0.9,
                relevant_metrics=(streak.metric_id,) if streak.metric_id else (),
                relevance_period=_streak_span(streak) or recent,
                generated_at=now,
                actionable_text="You're on a roll. Keep up the momentum.",
            ))

        for metric_id, series in context.series.items():
            if not _is_graded(series):
                continue
            insight = self._personal_best(metric_id, series, recent, now)
            if insight is not None:
                insights.append(insight)
        return insights

    def _personal_best(
        self,
        metric_id: str,
        series: MetricSeries,
        recent: DateRange,
        now: datetime,
    ) -> HealthInsight | None:
        recent_values = [p.value for p in series.points if recent.contains(p.date)]
        earlier_values = [p.value for p in series.points if p.date < recent.start]
        if not recent_values or len(earlier_values) < self._t.personal_best_min_history:
            return None

        pick = max if series.spec.higher_is_better else min
        recent_best = pick(recent_values)
        earlier_best = pick(earlier_values)
        if recent_best == earlier_best or pick(recent_best, earlier_best) != recent_best:
            return None

        best_day = next(p.date for p in series.points
                        if recent.contains(p.date) and p.value == recent_best)
        name = series.display_name
        return HealthInsight(
            type=InsightType.ACHIEVEMENT,
            priority=InsightPriority.HIGH,
            title=f"New personal best for {name}",
            description=(
                f"Your {name.lower()} reached {recent_best:g} this week, "
                f"better than anything in the previous {len(earlier_values)} entries."
            ),
            confidence=0.95,
            relevant_metrics=(metric_id,),
            relevance_period=DateRange(best_day, best_day),
            generated_at=now,
            actionable_text="Note what contributed to this so you can repeat it.",
        )

    def _detect_patterns(self, context: InsightContext, now: datetime) -> list[HealthInsight]:
        insights: list[HealthInsight] = []
        for metric_id, series in context.series.items():
            if not _is_graded(series) or len(series) < self._t.pattern_min_points:
                continue
            for insight in (
                self._weekly_pattern(metric_id, series, context.period, now),
                self._weekend_effect(metric_id, series, context.period, now),
            ):
                if insight is not None:
                    insights.append(insight)
        return insights

    def _weekly_pattern(
        self,
        metric_id: str,
        series: MetricSeries,
        period: DateRange,
        now: datetime,
    ) -> HealthInsight | None:
        by_weekday: dict[int, list[float]] = {}
        for point in series.points:
            by_weekday.setdefault(point.date.weekday(), []).append(point.value)
        if len(by_weekday) < self._t.pattern_min_weekdays:
            return None

        averages = {day: statistics.fmean(vals) for day, vals in sorted(by_weekday.items())}
        mean = statistics.fmean(averages.values())
        if mean == 0:
            return None
        high_day = max(averages, key=averages.__getitem__)
        low_day = min(averages, key=averages.__getitem__)
        spread = averages[high_day] - averages[low_day]
        if spread <= abs(mean) * self._t.pattern_min_spread:
            return None

        best, worst = (high_day, low_day) if series.spec.higher_is_better else (low_day, high_day)
        name = series.display_name
        best_name, worst_name = _WEEKDAY_NAMES[best], _WEEKDAY_NAMES[worst]
        return HealthInsight(
            type=InsightType.PATTERN,
            priority=InsightPriority.MEDIUM,
            title=f"Weekly {name.lower()} pattern detected",
            description=(
                f"Your {name.lower()} tends to be best on {best_name}s "
                f"({averages[best]:.1f} on average) and worst on {worst_name}s "
                f"({averages[worst]:.1f})."
            ),
            confidence=_confidence(len(series), spread / abs(mean),
                                   full_sample=self._t.full_confidence_sample),
            relevant_metrics=(metric_id,),
            relevance_period=period,
            generated_at=now,
            actionable_text=(
                f"Plan demanding activities for {best_name}s and take extra care on {worst_name}s."
            ),
        )

    def _weekend_effect(
        self,
        metric_id: str,
        series: MetricSeries,
        period: DateRange,
        now: datetime,
    ) -> HealthInsight | None:
        weekend = [p.value for p in series.points if p.date.weekday() >= 5]
        weekday = [p.value for p in series.points if p.date.weekday() < 5]
        if len(weekend) < 4 or len(weekday) < 6:
            return None

        mean = statistics.fmean(series.values)
        if mean == 0:
            return None
        weekend_avg = statistics.fmean(weekend)
        weekday_avg = statistics.fmean(weekday)
        diff = weekend_avg - weekday_avg
        if abs(diff) <= abs(mean) * self._t.weekend_min_difference:
            return None

        name = series.display_name
        better = series.spec.is_improvement(diff)
        return HealthInsight(
            type=InsightType.PATTERN,
            priority=InsightPriority.LOW,
            title=f"{name} is {'better' if better else 'worse'} on weekends",
            description=(
                f"Your {name.lower()} averages {weekend_avg:.1f} on weekends "
                f"versus {weekday_avg:.1f} on weekdays."
            ),
            confidence=_confidence(len(series), abs(diff) / abs(mean),
                                   full_sample=self._t.full_confidence_sample),
            relevant_metrics=(metric_id,),
            relevance_period=period,
            generated_at=now,
            actionable_text=(
                "Look at what your weekends do differently and bring some of it into the week."
                if better else
                "Weekend routines may be affecting you; try keeping them closer to weekdays."
            ),
        )

    def _detect_correlations(self, context: InsightContext, now: datetime) -> list[HealthInsight]:
        candidates = [
            c for c in context.correlations
            if c.is_significant and abs(c.coefficient) > self._t.correlation_min_coefficient
        ]
        if not candidates:
            return []

        strongest = candidates[0]
        for result in candidates[1:]:
            if abs(result.coefficient) > abs(strongest.coefficient):
                strongest = result

        primary = strongest.primary_display_name or strongest.primary_metric
        secondary = strongest.secondary_display_name or strongest.secondary_metric
        strongly = abs(strongest.coefficient) > self._t.correlation_strong_coefficient
        description = " ".join(strongest.insights[:2]) or (
            f"{primary} and {secondary} move together."
        )
        actionable = strongest.insights[2] if len(strongest.insights) > 2 else None

        return [HealthInsight(
            type=InsightType.CORRELATION,
            priority=InsightPriority.HIGH if strongly else InsightPriority.MEDIUM,
            title=f"{primary} and {secondary} are {'strongly ' if strongly else ''}connected",
            description=description,
            confidence=_confidence(
                strongest.matched_point_count,
                abs(strongest.coefficient),
                strongest.significance,
                full_sample=self._t.full_confidence_sample,
            ),
            relevant_metrics=strongest.metric_pair,
            relevance_period=context.period,
            generated_at=now,
            actionable_text=actionable,
        )]

    def _detect_warnings(self, context: InsightContext, now: datetime) -> list[HealthInsight]:
        insights: list[HealthInsight] = []
        recent = self._recent_window(context.period)

        for metric_id, series in context.series.items():
            if not _is_graded(series):
                continue
            warning = self._worsening_run(metric_id, series, recent, now)
            if warning is not None:
                insights.append(warning)

            stats = context.statistics.get(metric_id)
            if (
                stats is not None
                and stats.trend_direction is not TrendDirection.STABLE
                and stats.count >= self._t.min_trend_points
                and abs(stats.change_percentage) >= self._t.severe_change_percent
                and not series.spec.is_improvement(stats.change_percentage)
            ):
                name = series.display_name
                insights.append(HealthInsight(
                    type=InsightType.WARNING,
                    priority=InsightPriority.CRITICAL,
                    title=f"Significant worsening in {name}",
                    description=(
                        f"Your {name.lower()} changed {stats.change_percentage:+.0f}% over "
                        f"this period, in the wrong direction."
                    ),
                    confidence=_confidence(stats.count, abs(stats.change_percentage) / 50.0,
                                           full_sample=self._t.full_confidence_sample),
                    relevant_metrics=(metric_id,),
                    relevance_period=context.period,
                    generated_at=now,
                    actionable_text="Consider discussing this change with your care team.",
                ))

        score = context.health_score
        if (
            score is not None
            and score.trend is ScoreTrend.DECLINING
            and score.previous_score is not None
        ):
            drop = score.previous_score - score.overall_score
            insights.append(HealthInsight(
                type=InsightType.WARNING,
                priority=(
                    InsightPriority.CRITICAL if drop >= self._t.severe_score_drop
                    else InsightPriority.HIGH
                ),
                title="Your health score is declining",
                description=(
                    f"Your overall health score fell from {score.previous_score:.0f} "
                    f"to {score.overall_score:.0f} compared with the previous window."
                ),
                confidence=_confidence(len(score.components) * 10, drop / 30.0,
                                       full_sample=self._t.full_confidence_sample),
                relevant_metrics=tuple(c.metric.value for c in score.components),
                relevance_period=score.window or recent,
                generated_at=now,
                actionable_text="Check which areas dropped the most and start there.",
            ))
        return insights

    def _worsening_run(
        self,
        metric_id: str,
        series: MetricSeries,
        recent: DateRange,
        now: datetime,
    ) -> HealthInsight | None:
        values = [p.value for p in series.points if recent.contains(p.date)]
        run = self._t.worsening_run
        if len(values) < run:
            return None
        tail = values[-run:]
        steps = [after - before for before, after in zip(tail, tail[1:])]
        if not steps or not all(s != 0 and not series.spec.is_improvement(s) for s in steps):
            return None

        name = series.display_name
        movement = "declining" if series.spec.higher_is_better else "rising"
        return HealthInsight(
            type=InsightType.WARNING,
            priority=InsightPriority.HIGH,
            title=f"{name} has been {movement}",
            description=f"Your {name.lower()} has been {movement} for your last {run} entries.",
            confidence=0.8,
            relevant_metrics=(metric_id,),
            relevance_period=recent,
            generated_at=now,
            actionable_text="Consider reviewing recent changes in routine, medications, or activities.",
        )

    def _detect_recommendations(
        self,
        context: InsightContext,
        now: datetime,
        earlier: list[HealthInsight],
    ) -> list[HealthInsight]:
        insights: list[HealthInsight] = []
        recommended: set[str] = set()

        for candidate in earlier:
            if candidate.type is InsightType.WARNING:
                metric_id = self._focus_metric(candidate, context)
                if metric_id is None or metric_id in recommended:
                    continue
                series = context.series.get(metric_id)
                if series is None:
                    continue
                recommended.add(metric_id)
                name = series.display_name
                insights.append(HealthInsight(
                    type=InsightType.RECOMMENDATION,
                    priority=InsightPriority.MEDIUM,
                    title=f"Ways to support your {name.lower()}",
                    description=f"Recent entries suggest your {name.lower()} needs some attention.",
                    confidence=round(candidate.confidence * 0.9, 4),
                    relevant_metrics=(metric_id,),
                    relevance_period=candidate.relevance_period,
                    generated_at=now,
                    actionable_text=series.spec.suggestion,
                ))
            elif (
                candidate.type is InsightType.PATTERN
                and candidate.confidence < self._t.weak_pattern_confidence
            ):
                metric_id = candidate.relevant_metrics[0] if candidate.relevant_metrics else None
                series = context.series.get(metric_id) if metric_id else None
                if series is None:
                    continue
                name = series.display_name
                insights.append(HealthInsight(
                    type=InsightType.RECOMMENDATION,
                    priority=InsightPriority.LOW,
                    title=f"Keep logging your {name.lower()}",
                    description=(
                        f"There may be a pattern in your {name.lower()}, "
                        f"but more entries are needed to confirm it."
                    ),
                    confidence=round(candidate.confidence, 4),
                    relevant_metrics=(metric_id,),
                    relevance_period=candidate.relevance_period,
                    generated_at=now,
                    actionable_text=f"Log your {name.lower()} every day for the next two weeks.",
                ))

        tracked = [s for s in context.series.values() if not s.is_empty]
        if len(tracked) < self._t.min_tracked_metrics:
            insights.append(HealthInsight(
                type=InsightType.RECOMMENDATION,
                priority=InsightPriority.MEDIUM,
                title="Start tracking more metrics",
                description=(
                    f"You're currently tracking {len(tracked)} metric(s). "
                    f"Tracking more gives the analysis more to work with."
                ),
                confidence=0.9,
                relevant_metrics=(),
                relevance_period=context.period,
                generated_at=now,
                actionable_text="Consider adding mood, pain or energy tracking.",
            ))
        return insights

    @staticmethod
    def _focus_metric(warning: HealthInsight, context: InsightContext) -> str | None:
        """The metric a warning is about; the weakest component for score warnings."""
        if len(warning.relevant_metrics) == 1:
            return warning.relevant_metrics[0]
        score = context.health_score
        if score is None or not score.components:
            return None
        weakest = min(score.components, key=lambda c: c.score)
        return weakest.metric.value

