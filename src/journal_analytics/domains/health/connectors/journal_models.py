"""Raw daily journal records, as handed over by the persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from journal_analytics.domains.health.domain_logic.metric_models import to_day


@dataclass
class SymptomRating:
    """A user-defined symptom's rating for one day."""

    symptom_id: int
    symptom_name: str
    rating: int
    is_binary: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SymptomRating:
        return cls(
            symptom_id=int(data["symptom_id"]),
            symptom_name=str(data.get("symptom_name", "")),
            rating=int(data.get("rating", 0)),
            is_binary=bool(data.get("is_binary", False)),
        )


@dataclass
class MedicationAdherence:
    """Whether one tracked medication was taken on a day."""

    medication_id: int
    medication_name: str
    was_taken: bool = False
    is_as_needed: bool = False
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MedicationAdherence:
        return cls(
            medication_id=int(data.get("medication_id", 0)),
            medication_name=str(data["medication_name"]),
            was_taken=bool(data.get("was_taken", False)),
            is_as_needed=bool(data.get("is_as_needed", False)),
            notes=data.get("notes"),
        )


@dataclass
class DailyLog:
    """One journal entry. Ratings are on a 0-10 scale; ``None`` = not logged."""

    date: date
    mood: int | None = None
    pain_level: int | None = None
    energy_level: int | None = None
    is_flare_day: bool = False
    weather: str | None = None
    meals: list[str] = field(default_factory=list)
    activities: list[str] = field(default_factory=list)
    medication_adherence: list[MedicationAdherence] = field(default_factory=list)
    symptom_ratings: list[SymptomRating] = field(default_factory=list)
    notes: str | None = None

    def __post_init__(self) -> None:
        self.date = to_day(self.date)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DailyLog:
        """Build a log from the app's JSON export shape."""
        return cls(
            date=to_day(data["date"]),
            mood=_optional_int(data.get("mood")),
            pain_level=_optional_int(data.get("pain_level")),
            energy_level=_optional_int(data.get("energy_level")),
            is_flare_day=bool(data.get("is_flare_day", False)),
            weather=data.get("weather"),
            meals=list(data.get("meals") or []),
            activities=list(data.get("activities") or []),
            medication_adherence=[
                MedicationAdherence.from_dict(m) for m in data.get("medication_adherence") or []
            ],
            symptom_ratings=[
                SymptomRating.from_dict(s) for s in data.get("symptom_ratings") or []
            ],
            notes=data.get("notes"),
        )

    def adherence_rate(self) -> float | None:
        """Percent of scheduled (non as-needed) medications taken, if any."""
        scheduled = [m for m in self.medication_adherence if not m.is_as_needed]
        if not scheduled:
            return None
        taken = sum(1 for m in scheduled if m.was_taken)
        return taken / len(scheduled) * 100.0


def _optional_int(val: Any) -> int | None:
    if val is None:
        return None
    return int(val)
