"""Journal data connectors: read-only access to persisted daily logs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from journal_analytics.domains.health.connectors.journal_models import DailyLog
from journal_analytics.domains.health.domain_logic.metric_models import DateRange


@runtime_checkable
class JournalDataSource(Protocol):
    """Abstract interface for day-bucketed journal retrieval.

    The analytics engine calls these methods without knowing whether logs
    come from the app database, a JSON export, or the mock generator.
    """

    def get_logs(self, date_range: DateRange) -> list[DailyLog]:
        """Daily logs whose date falls inside ``date_range``."""
        ...

    def tracked_symptoms(self) -> dict[int, str]:
        """Symptom id -> display name for every symptom the user tracks."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the active source: 'memory', 'json_export', or 'mock'."""
        ...

    def get_provenance(self) -> dict[str, str]:
        """Return provenance metadata suitable for tool responses."""
        ...
