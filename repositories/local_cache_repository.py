import json
import logging  # Import the logging module
import os
from typing import List, Optional

from domain.entry_cache import EntryCache
from domain.models import Entry

SNAPSHOT_VERSION = 1


class JsonFileEntryCache(EntryCache):
    """
    Keeps the entry list in a JSON file, the desktop stand-in for the
    browser's localStorage slot.
    Snapshot layout: {"version": 1, "entries": [{"id", "title", "recordId"}, ...]}.
    A bare JSON array (the old, unversioned layout) is still accepted on load.
    """
    def __init__(self, file_path: str):
        self.file_path = file_path

    def load(self) -> Optional[List[Entry]]:
        if not os.path.exists(self.file_path):
            return None
        try:
            with open(self.file_path, mode='r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning(f"Ignoring unreadable entry cache {self.file_path}: {e}")
            return None

        if isinstance(data, list):
            items = data
        elif isinstance(data, dict) and data.get("version") == SNAPSHOT_VERSION:
            items = data.get("entries") or []
        else:
            version = data.get("version") if isinstance(data, dict) else None
            logging.warning(f"Ignoring entry cache {self.file_path} with unsupported version {version!r}.")
            return None

        return [Entry.from_dict(item) for item in items if isinstance(item, dict)]

    def save(self, entries: List[Entry]):
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        snapshot = {"version": SNAPSHOT_VERSION, "entries": [e.to_dict() for e in entries]}
        tmp_path = f"{self.file_path}.tmp"
        with open(tmp_path, mode='w', encoding='utf-8') as f:
            json.dump(snapshot, f, ensure_ascii=False)
        os.replace(tmp_path, self.file_path)


class InMemoryEntryCache(EntryCache):
    """An EntryCache that lives only as long as the process."""

    def __init__(self, entries: Optional[List[Entry]] = None):
        self.entries = list(entries) if entries is not None else None

    def load(self) -> Optional[List[Entry]]:
        return list(self.entries) if self.entries is not None else None

    def save(self, entries: List[Entry]):
        self.entries = list(entries)
