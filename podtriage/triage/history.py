"""Persist the append-only log of past triage runs to a JSON file.

Loading never raises: a missing or corrupt file is treated as an empty
history so triage can always proceed.  Saving always raises on failure,
since silently losing an entry would skew the next run's trend analysis.
"""

import logging
import os

from pydantic import TypeAdapter, ValidationError

from podtriage.storage import atomic_write_json
from podtriage.triage.models import HistoryEntry

logger = logging.getLogger(__name__)

_HISTORY_ADAPTER = TypeAdapter(list[HistoryEntry])


class HistoryStore:
    """File-backed history of triage runs, oldest first."""

    def __init__(self, path: str) -> None:
        self.path = path

    def load(self) -> list[HistoryEntry]:
        """Return the stored history, or an empty list if it is missing or unreadable."""
        if not os.path.exists(self.path):
            logger.info("No history file at %s, starting fresh", self.path)
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                raw = f.read()
            return _HISTORY_ADAPTER.validate_json(raw)
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable history file %s: %s", self.path, e)
            return []

    def save(self, history: list[HistoryEntry]) -> None:
        """Atomically overwrite the history file. Raises on failure."""
        atomic_write_json(self.path, _HISTORY_ADAPTER.dump_python(history, mode="json"))
        logger.debug("Saved %d history entries to %s", len(history), self.path)

    def append(self, history: list[HistoryEntry], entry: HistoryEntry) -> list[HistoryEntry]:
        """Append ``entry`` to ``history``, persist, and return the new log."""
        updated = [*history, entry]
        self.save(updated)
        return updated
