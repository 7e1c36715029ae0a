from abc import ABC, abstractmethod
from typing import List, Optional

from domain.models import Entry


class EntryCache(ABC):
    """
    Abstract Base Class for the client's persisted copy of the entry list.
    The remote table stays the source of truth; this is only the
    last-known-good snapshot used to render before the network answers.
    """
    @abstractmethod
    def load(self) -> Optional[List[Entry]]:
        """Returns the cached entries, or None if nothing usable is stored."""
        pass

    @abstractmethod
    def save(self, entries: List[Entry]):
        """Replaces the stored snapshot with the given entries."""
        pass
