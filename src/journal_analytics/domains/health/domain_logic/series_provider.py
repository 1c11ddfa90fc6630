"""Raw journal logs -> day-bucketed numeric metric series.

Each extractor maps one ``DailyLog`` to a float (or ``None`` when the day has
no value for the metric). Binary and categorical sources get a fixed numeric
encoding here so downstream components only ever see floats:

    yes / no                  -> 1.0 / 0.0
    weather                   -> ordinal 1-6 (stormy .. sunny), unknown 3.5
    medication adherence      -> percent of scheduled doses taken
    activity / meal counts    -> entries per day

Missing days are omitted, never zero-filled.
"""

from __future__ import annotations

import logging
from typing import Callable

from journal_analytics.domains.health.connectors import JournalDataSource
from journal_analytics.domains.health.connectors.journal_models import DailyLog
from journal_analytics.domains.health.domain_logic.errors import UnknownMetricError
from journal_analytics.domains.health.domain_logic.metric_models import (
    DateRange,
    MetricDataPoint,
    MetricKind,
    MetricSeries,
    encode_weather,
    get_metric_spec,
)

logger = logging.getLogger(__name__)

Extractor = Callable[[DailyLog], "float | None"]


def _rating(value: int | None) -> float | None:
    return None if value is None else float(value)


def _weather(log: DailyLog) -> float | None:
    return None if not log.weather else encode_weather(log.weather)


_EXTRACTORS: dict[MetricKind, Extractor] = {
    MetricKind.MOOD: lambda log: _rating(log.mood),
    MetricKind.PAIN_LEVEL: lambda log: _rating(log.pain_level),
    MetricKind.ENERGY_LEVEL: lambda log: _rating(log.energy_level),
    MetricKind.FLARE_DAY: lambda log: 1.0 if log.is_flare_day else 0.0,
    MetricKind.MEDICATION_ADHERENCE: DailyLog.adherence_rate,
    MetricKind.ACTIVITY_COUNT: lambda log: float(len(log.activities)),
    MetricKind.MEAL_COUNT: lambda log: float(len(log.meals)),
    MetricKind.WEATHER: _weather,
}


class MetricSeriesProvider:
    """Builds ``MetricSeries`` from a journal data source.

    Usage::

        provider = MetricSeriesProvider(source)
        window = DateRange.last_n_days(date.today(), 30)
        mood = provider.build_series(MetricKind.MOOD, window)
        headache = provider.build_symptom_series(1, window)
    """

    def __init__(self, source: JournalDataSource) -> None:
        self._source = source

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_series(self, kind: MetricKind | str, date_range: DateRange) -> MetricSeries:
        """Series for one built-in metric kind."""
        try:
            kind = MetricKind(kind)
        except ValueError as exc:
            raise UnknownMetricError(f"Unknown metric kind: {kind!r}") from exc
        if kind.is_per_item:
            raise UnknownMetricError(
                f"{kind.value!r} is tracked per item; use build_series_for_id('{kind.value}:<key>')"
            )
        return self._build(kind, kind.value, get_metric_spec(kind).display_name,
                           _EXTRACTORS[kind], date_range)

    def build_symptom_series(self, symptom_id: int, date_range: DateRange) -> MetricSeries:
        """Series for one user-defined symptom (0-10 severity, or 0/1 if binary)."""
        logs = self._daily_logs(date_range)
        name = self._source.tracked_symptoms().get(symptom_id)
        if name is None:
            name = next(
                (r.symptom_name for log in logs for r in log.symptom_ratings
                 if r.symptom_id == symptom_id),
                f"Symptom {symptom_id}",
            )

        def extract(log: DailyLog) -> float | None:
            for rating in log.symptom_ratings:
                if rating.symptom_id == symptom_id:
                    if rating.is_binary:
                        return 1.0 if rating.rating > 0 else 0.0
                    return float(rating.rating)
            return None

        return self._build(MetricKind.SYMPTOM, f"symptom:{symptom_id}", name,
                           extract, date_range, logs=logs)

    def build_medication_series(self, medication_name: str, date_range: DateRange) -> MetricSeries:
        """1.0 on days the medication was taken, 0.0 when logged but skipped."""
        def extract(log: DailyLog) -> float | None:
            for entry in log.medication_adherence:
                if entry.medication_name == medication_name:
                    return 1.0 if entry.was_taken else 0.0
            return None

        return self._build(MetricKind.MEDICATION, f"medication:{medication_name}",
                           medication_name, extract, date_range)

    def build_activity_series(self, activity: str, date_range: DateRange) -> MetricSeries:
        """1.0 on logged days that include the activity, else 0.0."""
        return self._build(MetricKind.ACTIVITY, f"activity:{activity}", activity,
                           lambda log: 1.0 if activity in log.activities else 0.0, date_range)

    def build_meal_series(self, meal: str, date_range: DateRange) -> MetricSeries:
        """1.0 on logged days that include the food, else 0.0."""
        return self._build(MetricKind.MEAL, f"meal:{meal}", meal,
                           lambda log: 1.0 if meal in log.meals else 0.0, date_range)

    def build_series_for_id(self, metric_id: str, date_range: DateRange) -> MetricSeries:
        """Resolve a metric id (``mood``, ``symptom:3``, ``meal:Salad``...)."""
        kind_part, sep, key = metric_id.partition(":")
        if not sep:
            return self.build_series(kind_part, date_range)
        if not key:
            raise UnknownMetricError(f"Metric id {metric_id!r} is missing its item key")
        if kind_part == MetricKind.SYMPTOM.value:
            try:
                symptom_id = int(key)
            except ValueError as exc:
                raise UnknownMetricError(f"Symptom id must be an integer: {metric_id!r}") from exc
            return self.build_symptom_series(symptom_id, date_range)
        if kind_part == MetricKind.MEDICATION.value:
            return self.build_medication_series(key, date_range)
        if kind_part == MetricKind.ACTIVITY.value:
            return self.build_activity_series(key, date_range)
        if kind_part == MetricKind.MEAL.value:
            return self.build_meal_series(key, date_range)
        raise UnknownMetricError(f"Unknown metric id: {metric_id!r}")

    def available_metric_ids(self, date_range: DateRange) -> list[str]:
        """Built-in metrics and symptoms that have at least one value in range."""
        logs = self._daily_logs(date_range)
        available: list[str] = []
        for kind, extract in _EXTRACTORS.items():
            if kind is MetricKind.FLARE_DAY:
                has_data = any(log.is_flare_day for log in logs)
            else:
                has_data = any(extract(log) is not None for log in logs)
            if has_data:
                available.append(kind.value)

        logged_symptoms = {r.symptom_id for log in logs for r in log.symptom_ratings}
        for symptom_id in sorted(logged_symptoms):
            available.append(f"symptom:{symptom_id}")
        return available

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _daily_logs(self, date_range: DateRange) -> list[DailyLog]:
        """One log per calendar day in range, oldest first; the latest entry wins."""
        by_day: dict = {}
        for log in self._source.get_logs(date_range):
            if date_range.contains(log.date):
                by_day[log.date] = log
        return [by_day[day] for day in sorted(by_day)]

    def _build(
        self,
        kind: MetricKind,
        metric_id: str,
        display_name: str,
        extract: Extractor,
        date_range: DateRange,
        *,
        logs: list[DailyLog] | None = None,
    ) -> MetricSeries:
        spec = get_metric_spec(kind)
        if logs is None:
            logs = self._daily_logs(date_range)

        points = []
        for log in logs:
            value = extract(log)
            if value is None:
                continue
            points.append(MetricDataPoint(
                date=log.date,
                value=float(value),
                metric_kind=kind,
                category=spec.category,
            ))

        logger.debug("Built series %s: %d points over %d days",
                     metric_id, len(points), date_range.days)
        return MetricSeries(
            metric_id=metric_id,
            display_name=display_name,
            kind=kind,
            category=spec.category,
            points=tuple(points),
            date_range=date_range,
        )
