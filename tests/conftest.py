"""Shared test fixtures for journal analytics tests."""

from __future__ import annotations

import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from journal_analytics.domains.health.connectors.journal_models import (  # noqa: E402
    DailyLog,
    MedicationAdherence,
    SymptomRating,
)
from journal_analytics.domains.health.connectors.providers import (  # noqa: E402
    InMemoryJournalSource,
    MockJournalSource,
)
from journal_analytics.domains.health.domain_logic.analytics_engine import (  # noqa: E402
    AnalyticsConfig,
)

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JOURNAL_DATA_PATH", "")
    monkeypatch.delenv("ANALYTICS_METRIC_WEIGHTS", raising=False)
    monkeypatch.delenv("ANALYTICS_MAX_INSIGHTS", raising=False)


# A Sunday, so weekday-sensitive tests are stable.
TODAY = date(2026, 3, 1)
FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


# ---------------------------------------------------------------------------
# Journal fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_source() -> MockJournalSource:
    """Deterministic 90-day mock journal ending on TODAY."""
    return MockJournalSource(TODAY, 90)


@pytest.fixture
def small_journal() -> InMemoryJournalSource:
    """Five consecutive days with a clear mood/pain relationship."""
    rows = [
        # (day offset, mood, pain, energy, weather, headache)
        (4, 3, 8, 3, "Stormy", 7),
        (3, 4, 7, 4, "Rainy", 6),
        (2, 6, 5, 5, "Cloudy", 4),
        (1, 7, 3, 6, "Sunny 72°F", 2),
        (0, 8, 2, 8, "Sunny", 1),
    ]
    logs = []
    for offset, mood, pain, energy, weather, headache in rows:
        logs.append(DailyLog(
            date=date.fromordinal(TODAY.toordinal() - offset),
            mood=mood,
            pain_level=pain,
            energy_level=energy,
            is_flare_day=pain >= 8,
            weather=weather,
            meals=["Oatmeal", "Salad"] if offset % 2 else ["Oatmeal"],
            activities=["Walking"] if mood >= 6 else [],
            medication_adherence=[
                MedicationAdherence(1, "Vitamin D", was_taken=True),
                MedicationAdherence(2, "Iron", was_taken=offset % 2 == 0),
                MedicationAdherence(3, "Ibuprofen", was_taken=pain >= 7, is_as_needed=True),
            ],
            symptom_ratings=[SymptomRating(1, "Headache", headache)],
        ))
    return InMemoryJournalSource(logs)


@pytest.fixture
def analytics_config() -> AnalyticsConfig:
    return AnalyticsConfig()
