import logging
from typing import List

from pydantic import TypeAdapter, ValidationError

from ..state.models import HistoryEntry
from .storage import SlotRepository

logger = logging.getLogger(__name__)

_entries_adapter = TypeAdapter(List[HistoryEntry])


class HistoryRepository(SlotRepository):
    """
    Generated commands, newest first.
    Entries are only ever added or removed, never edited.
    """

    key = "command-generator-history"

    def list(self) -> List[HistoryEntry]:
        raw = self._read()
        if not raw:
            return []
        try:
            return _entries_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed history: {e.error_count()} errors")
            return []

    def save(self, entries: List[HistoryEntry]) -> bool:
        return self._write(_entries_adapter.dump_json(entries).decode("utf-8"))

    def add(self, entry: HistoryEntry) -> List[HistoryEntry]:
        entries = [entry, *self.list()]
        self.save(entries)
        return entries

    def remove(self, entry_id: str) -> List[HistoryEntry]:
        entries = [e for e in self.list() if e.id != entry_id]
        self.save(entries)
        return entries
