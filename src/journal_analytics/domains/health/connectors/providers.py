"""Concrete JournalDataSource implementations."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable

from journal_analytics.domains.health.connectors.journal_export import load_journal_export
from journal_analytics.domains.health.connectors.journal_models import DailyLog
from journal_analytics.domains.health.connectors.mock_data import (
    MOCK_SYMPTOMS,
    generate_mock_logs,
)
from journal_analytics.domains.health.domain_logic.metric_models import DateRange


class InMemoryJournalSource:
    """Serves logs handed over by the caller (the persistence seam)."""

    def __init__(
        self,
        logs: Iterable[DailyLog] = (),
        symptoms: dict[int, str] | None = None,
    ) -> None:
        self._logs = sorted(logs, key=lambda log: log.date)
        self._symptoms = dict(symptoms) if symptoms is not None else _symptoms_from_logs(self._logs)

    def get_logs(self, date_range: DateRange) -> list[DailyLog]:
        return [log for log in self._logs if date_range.contains(log.date)]

    def tracked_symptoms(self) -> dict[int, str]:
        return dict(self._symptoms)

    @property
    def data_source(self) -> str:
        return "memory"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": f"Journal supplied by the caller ({len(self._logs)} entries).",
        }


class JsonJournalSource(InMemoryJournalSource):
    """Serves logs from a journal JSON export file, read once at startup."""

    def __init__(self, export_path: str | Path) -> None:
        self._path = Path(export_path)
        super().__init__(load_journal_export(self._path))

    @property
    def data_source(self) -> str:
        return "json_export"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": (
                f"Journal export {self._path.name} ({len(self._logs)} entries)."
            ),
        }


class MockJournalSource(InMemoryJournalSource):
    """Uses the deterministic mock journal. Always available."""

    def __init__(self, end: date, days: int = 90, *, seed: int = 7) -> None:
        super().__init__(generate_mock_logs(end, days, seed=seed), symptoms=MOCK_SYMPTOMS)

    @property
    def data_source(self) -> str:
        return "mock"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": (
                "Using simulated journal data. "
                "Point JOURNAL_DATA_PATH at a journal export for real entries."
            ),
        }


def _symptoms_from_logs(logs: list[DailyLog]) -> dict[int, str]:
    symptoms: dict[int, str] = {}
    for log in logs:
        for rating in log.symptom_ratings:
            symptoms.setdefault(rating.symptom_id, rating.symptom_name)
    return symptoms
