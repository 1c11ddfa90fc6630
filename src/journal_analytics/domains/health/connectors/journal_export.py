"""Journal JSON export parser.

Reads the JSON array of daily log objects the app writes when the user
exports their journal. One object per day::

    [
      {"date": "2026-02-01", "mood": 7, "pain_level": 3, "energy_level": 6,
       "is_flare_day": false, "weather": "Sunny 72°F",
       "meals": ["Oatmeal"], "activities": ["Walking"],
       "medication_adherence": [{"medication_name": "Vitamin D", "was_taken": true}],
       "symptom_ratings": [{"symptom_id": 1, "symptom_name": "Headache", "rating": 2}]}
    ]
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from journal_analytics.domains.health.connectors.journal_models import DailyLog

logger = logging.getLogger(__name__)


class JournalParseError(Exception):
    """Raised when a journal export cannot be read or decoded."""


def load_journal_export(export_path: str | Path) -> list[DailyLog]:
    """Parse a journal export file into ``DailyLog`` records sorted by day.

    Raises:
        JournalParseError: If the file is missing, is not JSON, or holds
            entries that are not daily log objects.
    """
    path = Path(export_path).expanduser()
    if not path.exists():
        raise JournalParseError(f"Export file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise JournalParseError(f"Invalid JSON in {path}: {exc}") from exc

    if isinstance(raw, dict):
        raw = raw.get("logs", [])
    if not isinstance(raw, list):
        raise JournalParseError("Journal export must be a list of daily log objects")

    logs: list[DailyLog] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise JournalParseError(f"Entry {index} is not an object")
        try:
            logs.append(DailyLog.from_dict(entry))
        except (KeyError, TypeError, ValueError) as exc:
            raise JournalParseError(f"Entry {index} is malformed: {exc}") from exc

    logs.sort(key=lambda log: log.date)
    logger.info("Loaded %d journal entries from %s", len(logs), path)
    return logs
