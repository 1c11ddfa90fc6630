"""Result value types produced by the analytics engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum

from journal_analytics.domains.health.domain_logic.metric_models import (
    DateRange,
    MetricKind,
    MetricSeries,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class ScoreTrend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class InsightType(str, Enum):
    TREND = "trend"
    ACHIEVEMENT = "achievement"
    PATTERN = "pattern"
    CORRELATION = "correlation"
    WARNING = "warning"
    RECOMMENDATION = "recommendation"


class InsightPriority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.lower()


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChartStatistics:
    """Summary statistics for one series."""

    mean: float
    min: float
    max: float
    trend_direction: TrendDirection
    change_percentage: float
    median: float = 0.0
    count: int = 0


@dataclass(frozen=True)
class CorrelationResult:
    """Pearson correlation between two aligned series."""

    primary_metric: str
    secondary_metric: str
    coefficient: float
    p_value: float
    matched_point_count: int
    time_range: DateRange
    strength_label: str
    direction_label: str
    insights: tuple[str, ...] = ()
    primary_display_name: str = ""
    secondary_display_name: str = ""
    significance_level: float = 0.05
    aligned_points: tuple[tuple[date, float, float], ...] = ()

    @property
    def is_significant(self) -> bool:
        return self.p_value < self.significance_level

    @property
    def significance(self) -> float:
        """Confidence-style complement of the p-value."""
        return 1.0 - self.p_value

    @property
    def metric_pair(self) -> tuple[str, str]:
        return (self.primary_metric, self.secondary_metric)


@dataclass(frozen=True)
class ScoreComponent:
    """One metric's contribution to the overall health score."""

    metric: MetricKind
    name: str
    score: float
    weight: float


@dataclass(frozen=True)
class HealthScore:
    """Weighted 0-100 aggregate of per-metric scores."""

    overall_score: float
    per_metric_scores: dict[MetricKind, float]
    trend: ScoreTrend
    computed_at: datetime
    components: tuple[ScoreComponent, ...] = ()
    previous_score: float | None = None
    window: DateRange | None = None

    @property
    def has_data(self) -> bool:
        return bool(self.per_metric_scores)


@dataclass(frozen=True)
class StreakResult:
    """Current and longest run of consecutive qualifying days."""

    streak_kind: str
    current_streak: int
    longest_streak: int
    is_active: bool
    metric_id: str | None = None
    last_day: date | None = None


@dataclass(frozen=True)
class HealthInsight:
    """One generated, human-readable finding."""

    type: InsightType
    priority: InsightPriority
    title: str
    description: str
    confidence: float
    relevant_metrics: tuple[str, ...]
    relevance_period: DateRange
    generated_at: datetime
    actionable_text: str | None = None

    @property
    def is_actionable(self) -> bool:
        return self.actionable_text is not None

    def as_dict(self) -> dict:
        return {
            "type": self.type.value,
            "priority": self.priority.label,
            "title": self.title,
            "description": self.description,
            "actionable_text": self.actionable_text,
            "is_actionable": self.is_actionable,
            "confidence": round(self.confidence, 4),
            "relevant_metrics": list(self.relevant_metrics),
            "relevance_period": {
                "start": self.relevance_period.start.isoformat(),
                "end": self.relevance_period.end.isoformat(),
            },
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class InsightContext:
    """Everything the insight detectors look at for one analysis run."""

    period: DateRange
    series: dict[str, MetricSeries] = field(default_factory=dict)
    statistics: dict[str, ChartStatistics] = field(default_factory=dict)
    correlations: tuple[CorrelationResult, ...] = ()
    health_score: HealthScore | None = None
    streaks: tuple[StreakResult, ...] = ()
