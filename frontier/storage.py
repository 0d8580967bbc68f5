from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, List, Optional

from frontier.models import VisitedEntry


class VisitedStore(ABC):
    """
    Abstract interface for the crawl's visited-address record.
    Insertion is test-and-set: the first writer for an address wins.
    """

    @abstractmethod
    def create_if_absent(self, entry: VisitedEntry) -> bool:
        """
        Atomically record entry ONLY if its address does not exist.
        Returns True if created, False if already exists.
        """
        pass

    @abstractmethod
    def get(self, address: str) -> Optional[VisitedEntry]:
        """Retrieve the entry recorded for an address."""
        pass

    @abstractmethod
    def entries(self) -> List[VisitedEntry]:
        """Snapshot of every recorded entry."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def __contains__(self, address) -> bool:
        return self.get(address) is not None


class VisitedSet(VisitedStore):
    """
    In-memory VisitedStore shared by every worker.
    One lock, held only for the dictionary operation itself.
    """

    def __init__(self):
        self._lock = Lock()
        self._entries: Dict[str, VisitedEntry] = {}

    def create_if_absent(self, entry: VisitedEntry) -> bool:
        with self._lock:
            if entry.address in self._entries:
                return False
            self._entries[entry.address] = entry
            return True

    def get(self, address: str) -> Optional[VisitedEntry]:
        with self._lock:
            return self._entries.get(address)

    def entries(self) -> List[VisitedEntry]:
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
