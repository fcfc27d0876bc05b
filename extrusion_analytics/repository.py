"""
Collaborator Interfaces

The persistence engine is external; the analytics core only needs a source of recent
readings and a registry of equipment. In-memory implementations back the examples
and tests.
"""

import copy
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from .config import CONFIG
from .core.accessor import parse_timestamp


class ReadingRepository(ABC):
    """
    Store of previously scored readings.
    """

    @abstractmethod
    def fetch_recent(self, limit: int) -> List[Dict[str, Any]]:
        """
        Most recent persisted readings.

        Args:
            limit: Maximum number of readings

        Returns:
            Readings, newest first
        """
        pass

    @abstractmethod
    def insert(self, readings: List[Dict[str, Any]]) -> int:
        """
        Persist scored readings.

        Returns:
            Number of readings stored
        """
        pass

    def latest(self) -> Optional[Dict[str, Any]]:
        """Newest persisted reading, or None."""
        recent = self.fetch_recent(1)
        return recent[0] if recent else None


class EquipmentRegistry(ABC):
    """
    Source of equipment reference data.
    """

    @abstractmethod
    def fetch_all(self) -> List[Dict[str, Any]]:
        """All equipment documents."""
        pass

    @abstractmethod
    def fetch_by_id(self, equipment_id: str) -> Optional[Dict[str, Any]]:
        """One equipment document, or None when unknown."""
        pass


class InMemoryReadingRepository(ReadingRepository):
    """
    Reading store keyed by timestamp.

    Readings without a parseable timestamp are refused. Inserting a reading with an
    existing timestamp replaces the stored one.
    """

    def __init__(self, readings: Optional[Iterable[Dict[str, Any]]] = None, cfg: Dict[str, Any] = CONFIG):
        self.cfg = cfg
        self._by_key: Dict[int, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        if readings:
            self.insert(list(readings))

    def __len__(self) -> int:
        return len(self._by_key)

    def insert(self, readings: List[Dict[str, Any]]) -> int:
        stored = 0
        with self._lock:
            for reading in readings:
                if not isinstance(reading, dict):
                    continue
                ts = parse_timestamp(reading.get(self.cfg['timestamp_field']))
                if ts is None:
                    continue
                self._by_key[ts.value] = copy.deepcopy(reading)
                stored += 1
        return stored

    def fetch_recent(self, limit: int) -> List[Dict[str, Any]]:
        with self._lock:
            keys = sorted(self._by_key, reverse=True)[:max(int(limit), 0)]
            return [copy.deepcopy(self._by_key[k]) for k in keys]

    def all(self) -> List[Dict[str, Any]]:
        """Every stored reading, newest first."""
        return self.fetch_recent(len(self._by_key))


class InMemoryEquipmentRegistry(EquipmentRegistry):
    """
    Equipment registry over a list of documents.
    """

    def __init__(self, documents: Optional[Iterable[Dict[str, Any]]] = None):
        self._documents: Dict[str, Dict[str, Any]] = {}
        for doc in documents or []:
            self.add(doc)

    def __len__(self) -> int:
        return len(self._documents)

    def add(self, document: Dict[str, Any]) -> None:
        equipment_id = str(document.get('id', document.get('_id', '')))
        self._documents[equipment_id] = copy.deepcopy(document)

    def fetch_all(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._documents.values()]

    def fetch_by_id(self, equipment_id: str) -> Optional[Dict[str, Any]]:
        doc = self._documents.get(str(equipment_id))
        return copy.deepcopy(doc) if doc is not None else None
