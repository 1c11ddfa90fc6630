"""Metric kinds, the metric catalog, and the day-bucketed series value types.

Every tracked metric is one member of the closed ``MetricKind`` enum. All
per-kind behaviour (display name, numeric encoding range, polarity, score
normalization, good-day threshold, default weight) is looked up in
``METRIC_CATALOG`` instead of being dispatched through provider objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, Literal


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class MetricKind(str, Enum):
    MOOD = "mood"
    PAIN_LEVEL = "pain_level"
    ENERGY_LEVEL = "energy_level"
    FLARE_DAY = "flare_day"
    MEDICATION_ADHERENCE = "medication_adherence"
    ACTIVITY_COUNT = "activity_count"
    MEAL_COUNT = "meal_count"
    WEATHER = "weather"
    # Per-item kinds: one series per symptom / medication / activity / meal
    SYMPTOM = "symptom"
    MEDICATION = "medication"
    ACTIVITY = "activity"
    MEAL = "meal"

    @property
    def is_per_item(self) -> bool:
        return self in _PER_ITEM_KINDS


_PER_ITEM_KINDS = frozenset({
    MetricKind.SYMPTOM,
    MetricKind.MEDICATION,
    MetricKind.ACTIVITY,
    MetricKind.MEAL,
})


class MetricCategory(str, Enum):
    CORE_HEALTH = "core_health"
    SYMPTOMS = "symptoms"
    MEDICATIONS = "medications"
    LIFESTYLE = "lifestyle"
    ENVIRONMENTAL = "environmental"


DataType = Literal["continuous", "binary", "categorical", "count", "percentage"]


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def to_day(value: date | datetime | str) -> date:
    """Normalize a timestamp, date or ISO string to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    raise TypeError(f"Cannot interpret {value!r} as a calendar day")


@dataclass(frozen=True)
class DateRange:
    """Closed interval of calendar days ``[start, end]``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"DateRange end {self.end} is before start {self.start}")

    @classmethod
    def last_n_days(cls, end: date, days: int) -> DateRange:
        """The ``days``-long window ending on ``end`` (inclusive)."""
        if days < 1:
            raise ValueError("days must be >= 1")
        return cls(end - timedelta(days=days - 1), end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def shifted(self, days: int) -> DateRange:
        """Same-length window moved by ``days`` (negative = into the past)."""
        delta = timedelta(days=days)
        return DateRange(self.start + delta, self.end + delta)

    def iter_days(self) -> Iterable[date]:
        for offset in range(self.days):
            yield self.start + timedelta(days=offset)


# ---------------------------------------------------------------------------
# Series value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricDataPoint:
    """One day-bucketed numeric value for a metric."""

    date: date
    value: float
    metric_kind: MetricKind
    category: MetricCategory


@dataclass(frozen=True)
class MetricSeries:
    """Date-ascending values for one metric, at most one point per day."""

    metric_id: str
    display_name: str
    kind: MetricKind
    category: MetricCategory
    points: tuple[MetricDataPoint, ...] = ()
    date_range: DateRange | None = None

    def __post_init__(self) -> None:
        points = tuple(self.points)
        for prev, cur in zip(points, points[1:]):
            if cur.date <= prev.date:
                raise ValueError(
                    f"Series {self.metric_id!r} must be strictly ascending by day "
                    f"({prev.date} then {cur.date})"
                )
        object.__setattr__(self, "points", points)
        if self.date_range is None and points:
            object.__setattr__(self, "date_range", DateRange(points[0].date, points[-1].date))

    @classmethod
    def from_values(
        cls,
        kind: MetricKind,
        values: Iterable[tuple[date, float]],
        *,
        metric_id: str | None = None,
        display_name: str | None = None,
        date_range: DateRange | None = None,
    ) -> MetricSeries:
        """Build a series from ``(day, value)`` pairs, sorting them by day."""
        spec = get_metric_spec(kind)
        points = tuple(
            MetricDataPoint(date=to_day(d), value=float(v), metric_kind=kind, category=spec.category)
            for d, v in sorted(values, key=lambda pair: to_day(pair[0]))
        )
        return cls(
            metric_id=metric_id or kind.value,
            display_name=display_name or spec.display_name,
            kind=kind,
            category=spec.category,
            points=points,
            date_range=date_range,
        )

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]

    @property
    def dates(self) -> list[date]:
        return [p.date for p in self.points]

    @property
    def spec(self) -> MetricSpec:
        return get_metric_spec(self.kind)

    def value_by_date(self) -> dict[date, float]:
        return {p.date: p.value for p in self.points}

    def within(self, window: DateRange) -> MetricSeries:
        """Restrict the series to the days inside ``window``."""
        return MetricSeries(
            metric_id=self.metric_id,
            display_name=self.display_name,
            kind=self.kind,
            category=self.category,
            points=tuple(p for p in self.points if window.contains(p.date)),
            date_range=window,
        )


# ---------------------------------------------------------------------------
# Metric catalog
# ---------------------------------------------------------------------------

def _clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def _scale_rating(value: float) -> float:
    return _clamp_score(value / 10.0 * 100.0)


def _invert_rating(value: float) -> float:
    return _clamp_score((10.0 - value) / 10.0 * 100.0)


def _percentage(value: float) -> float:
    return _clamp_score(value)


def _binary(value: float) -> float:
    return _clamp_score(value * 100.0)


def _invert_binary(value: float) -> float:
    return _clamp_score((1.0 - value) * 100.0)


def _count_against(target: float) -> Callable[[float], float]:
    def normalize(value: float) -> float:
        return _clamp_score(value / target * 100.0)
    return normalize


@dataclass(frozen=True)
class MetricSpec:
    """Per-kind semantics for a tracked metric."""

    kind: MetricKind
    display_name: str
    category: MetricCategory
    data_type: DataType
    description: str = ""
    value_range: tuple[float, float] | None = None
    higher_is_better: bool = True
    # Maps a (window-averaged) value onto 0-100; None = never scored
    normalizer: Callable[[float], float] | None = None
    good_threshold: float | None = None
    default_weight: float = 0.5
    streak_label: str = "good days"
    suggestion: str = "Keep logging daily so patterns become easier to spot."

    def normalize(self, value: float) -> float | None:
        if self.normalizer is None:
            return None
        return self.normalizer(value)

    def is_good(self, value: float) -> bool:
        """Whether a single day's value counts toward a good-day streak."""
        if self.good_threshold is None:
            return False
        if self.higher_is_better:
            return value >= self.good_threshold
        return value <= self.good_threshold

    def is_improvement(self, delta: float) -> bool:
        """Whether a positive/negative change is good for this metric."""
        return delta > 0 if self.higher_is_better else delta < 0


# Ordinal weather encoding: clear skies rank highest
WEATHER_ENCODING: dict[str, float] = {
    "stormy": 1.0,
    "rainy": 2.0,
    "gloomy": 3.0,
    "cloudy": 4.0,
    "snow": 5.0,
    "sunny": 6.0,
}
WEATHER_UNKNOWN = 3.5

METRIC_CATALOG: dict[MetricKind, MetricSpec] = {
    MetricKind.MOOD: MetricSpec(
        kind=MetricKind.MOOD,
        display_name="Mood",
        category=MetricCategory.CORE_HEALTH,
        data_type="continuous",
        description="0-10 scale tracking daily mood",
        value_range=(0.0, 10.0),
        normalizer=_scale_rating,
        good_threshold=6.0,
        default_weight=1.0,
        streak_label="good mood days",
        suggestion="Note what lifted your mood on good days and schedule more of it.",
    ),
    MetricKind.PAIN_LEVEL: MetricSpec(
        kind=MetricKind.PAIN_LEVEL,
        display_name="Pain Level",
        category=MetricCategory.CORE_HEALTH,
        data_type="continuous",
        description="0-10 scale tracking pain intensity",
        value_range=(0.0, 10.0),
        higher_is_better=False,
        normalizer=_invert_rating,
        good_threshold=4.0,
        default_weight=1.0,
        streak_label="low pain days",
        suggestion=(
            "Review recent changes in activity, sleep and medication, "
            "and consider discussing rising pain with your care team."
        ),
    ),
    MetricKind.ENERGY_LEVEL: MetricSpec(
        kind=MetricKind.ENERGY_LEVEL,
        display_name="Energy Level",
        category=MetricCategory.CORE_HEALTH,
        data_type="continuous",
        description="0-10 scale tracking energy levels",
        value_range=(0.0, 10.0),
        normalizer=_scale_rating,
        good_threshold=6.0,
        default_weight=0.8,
        streak_label="high energy days",
        suggestion="Look at sleep, meals and pacing on low-energy days.",
    ),
    MetricKind.FLARE_DAY: MetricSpec(
        kind=MetricKind.FLARE_DAY,
        display_name="Flare Days",
        category=MetricCategory.CORE_HEALTH,
        data_type="binary",
        description="Whether the day was a flare-up day",
        value_range=(0.0, 1.0),
        higher_is_better=False,
        normalizer=_invert_binary,
        good_threshold=0.0,
        streak_label="flare-free days",
        suggestion="Log possible triggers on flare days to help spot what precedes them.",
    ),
    MetricKind.MEDICATION_ADHERENCE: MetricSpec(
        kind=MetricKind.MEDICATION_ADHERENCE,
        display_name="Medication Adherence",
        category=MetricCategory.MEDICATIONS,
        data_type="percentage",
        description="Percentage of scheduled medications taken",
        value_range=(0.0, 100.0),
        normalizer=_percentage,
        good_threshold=80.0,
        default_weight=0.9,
        streak_label="adherent days",
        suggestion="Set a reminder or pair doses with a daily habit to stay on schedule.",
    ),
    MetricKind.ACTIVITY_COUNT: MetricSpec(
        kind=MetricKind.ACTIVITY_COUNT,
        display_name="Activity Count",
        category=MetricCategory.LIFESTYLE,
        data_type="count",
        description="Number of activities logged per day",
        normalizer=_count_against(2.0),
        good_threshold=1.0,
        streak_label="active days",
        suggestion="Try adding a short, gentle activity on quieter days.",
    ),
    MetricKind.MEAL_COUNT: MetricSpec(
        kind=MetricKind.MEAL_COUNT,
        display_name="Meal Count",
        category=MetricCategory.LIFESTYLE,
        data_type="count",
        description="Number of meals logged per day",
        normalizer=_count_against(3.0),
        good_threshold=3.0,
        streak_label="regular meal days",
        suggestion="Regular meals can help keep energy steady through the day.",
    ),
    MetricKind.WEATHER: MetricSpec(
        kind=MetricKind.WEATHER,
        display_name="Weather",
        category=MetricCategory.ENVIRONMENTAL,
        data_type="categorical",
        description="Daily weather conditions (stormy to sunny scale)",
        value_range=(1.0, 6.0),
        default_weight=0.0,
        streak_label="sunny days",
    ),
    MetricKind.SYMPTOM: MetricSpec(
        kind=MetricKind.SYMPTOM,
        display_name="Symptom",
        category=MetricCategory.SYMPTOMS,
        data_type="continuous",
        description="0-10 scale tracking symptom severity",
        value_range=(0.0, 10.0),
        higher_is_better=False,
        normalizer=_invert_rating,
        good_threshold=3.0,
        streak_label="low symptom days",
        suggestion="Track what you ate, did and took on days this symptom rises.",
    ),
    MetricKind.MEDICATION: MetricSpec(
        kind=MetricKind.MEDICATION,
        display_name="Medication",
        category=MetricCategory.MEDICATIONS,
        data_type="binary",
        description="Whether the medication was taken",
        value_range=(0.0, 1.0),
        normalizer=_binary,
        good_threshold=1.0,
        streak_label="days taken",
    ),
    MetricKind.ACTIVITY: MetricSpec(
        kind=MetricKind.ACTIVITY,
        display_name="Activity",
        category=MetricCategory.LIFESTYLE,
        data_type="binary",
        description="Whether the activity was done",
        value_range=(0.0, 1.0),
        normalizer=_binary,
        good_threshold=1.0,
        streak_label="days done",
    ),
    MetricKind.MEAL: MetricSpec(
        kind=MetricKind.MEAL,
        display_name="Meal",
        category=MetricCategory.LIFESTYLE,
        data_type="binary",
        description="Whether the food was eaten",
        value_range=(0.0, 1.0),
        normalizer=_binary,
        good_threshold=1.0,
        streak_label="days eaten",
    ),
}


def get_metric_spec(kind: MetricKind | str) -> MetricSpec:
    """Look up the catalog entry for a kind (accepts the enum or its value)."""
    return METRIC_CATALOG[MetricKind(kind)]


def encode_weather(description: str) -> float:
    """Map a weather description like ``"Sunny 72°F"`` onto the 1-6 scale."""
    words = description.strip().lower().split()
    if not words:
        return WEATHER_UNKNOWN
    return WEATHER_ENCODING.get(words[0], WEATHER_UNKNOWN)
