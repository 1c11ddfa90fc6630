"""Mock journal generator for development and testing.

Produces a plausible, deterministic journal for a person living with a
chronic condition: mid-range mood, mostly low pain with occasional flares,
energy that follows mood, and symptoms that follow pain and energy.
"""

from __future__ import annotations

import random
from datetime import date, timedelta

from journal_analytics.domains.health.connectors.journal_models import (
    DailyLog,
    MedicationAdherence,
    SymptomRating,
)

MOCK_SYMPTOMS: dict[int, str] = {
    1: "Headache",
    2: "Joint Pain",
    3: "Fatigue",
    4: "Nausea",
    5: "Stress",
}

_MEALS = [
    ["Oatmeal", "Yogurt"],
    ["Salad", "Apple", "Tea"],
    ["Salmon", "Rice"],
    ["Smoothie", "Banana"],
    ["Quinoa", "Hummus", "Soup"],
    ["Toast", "Juice"],
    ["Stir-fry", "Rice", "Fruit"],
]

_ACTIVITIES = [
    ["Walking", "Stretching"],
    ["Yoga"],
    ["Swimming"],
    [],
    ["Cycling", "Gardening"],
    ["Tai Chi"],
    ["Walking"],
]

_WEATHER = ["Sunny", "Cloudy", "Rainy", "Gloomy", "Stormy", "Snow"]

_MEDICATIONS = [
    (1, "Vitamin D", False),
    (2, "Multivitamin", False),
    (3, "Ibuprofen", True),  # as-needed, excluded from adherence
]


def _clamp_rating(value: float, lo: int = 0, hi: int = 10) -> int:
    return int(max(lo, min(hi, round(value))))


def generate_mock_logs(end: date, days: int = 90, *, seed: int = 7) -> list[DailyLog]:
    """Return ``days`` consecutive mock logs ending on ``end``, oldest first."""
    rng = random.Random(seed)
    logs: list[DailyLog] = []

    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        weekday = day.weekday()

        # Mondays run a little low, weekends a little high
        mood_shift = -1.2 if weekday == 0 else (0.8 if weekday >= 5 else 0.0)
        mood = _clamp_rating(rng.gauss(6.0 + mood_shift, 1.3), lo=1)
        pain = _clamp_rating(rng.gauss(3.5, 1.6))
        energy = _clamp_rating(mood + rng.randint(-2, 1) - (1 if pain >= 6 else 0), lo=1)
        is_flare = pain >= 7 and rng.random() < 0.5

        symptoms = [
            SymptomRating(1, MOCK_SYMPTOMS[1], _clamp_rating(pain + rng.randint(-2, 2))),
            SymptomRating(2, MOCK_SYMPTOMS[2], _clamp_rating(pain + rng.randint(-1, 1))),
            SymptomRating(3, MOCK_SYMPTOMS[3], _clamp_rating(10 - energy + rng.randint(-2, 2))),
            SymptomRating(4, MOCK_SYMPTOMS[4], rng.randint(0, 4)),
            SymptomRating(5, MOCK_SYMPTOMS[5], _clamp_rating(10 - mood + rng.randint(-3, 3))),
        ]

        adherence = [
            MedicationAdherence(
                medication_id=med_id,
                medication_name=name,
                was_taken=(rng.random() < 0.3) if as_needed else (rng.random() < 0.85),
                is_as_needed=as_needed,
            )
            for med_id, name, as_needed in _MEDICATIONS
        ]

        logs.append(DailyLog(
            date=day,
            mood=mood,
            pain_level=pain,
            energy_level=energy,
            is_flare_day=is_flare,
            weather=rng.choice(_WEATHER),
            meals=list(rng.choice(_MEALS)),
            activities=list(rng.choice(_ACTIVITIES)),
            medication_adherence=adherence,
            symptom_ratings=symptoms,
        ))

    return logs
