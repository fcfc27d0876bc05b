"""
Historical Window and In-Flight Buffer

Bounded, timestamp-ordered comparison population shared by the anomaly detector
and the quality scorer, plus the append-only buffer of records processed earlier in
the same run.
"""

import bisect
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np

from ..config import CONFIG
from .accessor import get_numeric, parse_timestamp
from .exceptions import HistoryUnavailableError
from .logger import get_logger


def is_plausible(record: Any, cfg=CONFIG) -> bool:
    """Throughput plausibility gate: finite and within (min, max]."""
    rule = cfg['plausibility']
    if not isinstance(record, dict):
        return False
    value = get_numeric(record, rule['field'])
    return value is not None and rule['min_exclusive'] < value <= rule['max_inclusive']


def fetch_history(repository, limit: int) -> List[Dict[str, Any]]:
    """
    Newest-first persisted readings from a repository.

    Raises:
        HistoryUnavailableError: If the repository read fails
    """
    if repository is None:
        return []
    try:
        return list(repository.fetch_recent(limit) or [])
    except Exception as e:
        raise HistoryUnavailableError(f"Historical fetch failed: {e}") from e


class HistoricalWindow:
    """
    Fixed-capacity buffer of readings, newest first.

    Admission requires a parseable timestamp, a plausible throughput and a timestamp
    not already present. When full, the oldest reading is evicted.
    """

    def __init__(self, capacity: Optional[int] = None, cfg: Dict[str, Any] = CONFIG):
        self.cfg = cfg
        self.capacity = int(capacity if capacity is not None else cfg['window']['capacity'])
        self._records: List[Dict[str, Any]] = []
        self._order: List[int] = []   # negated ns timestamps, ascending == newest first
        self._keys = set()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records))

    def __contains__(self, record: Any) -> bool:
        key = self._key(record)
        return key is not None and key in self._keys

    def _key(self, record: Any) -> Optional[int]:
        if not isinstance(record, dict):
            return None
        ts = parse_timestamp(record.get(self.cfg['timestamp_field']))
        return ts.value if ts is not None else None

    def add(self, record: Any) -> bool:
        """
        Add one reading.

        Returns:
            bool: True if the reading is held by the window afterwards
        """
        key = self._key(record)
        if key is None or key in self._keys or not is_plausible(record, self.cfg):
            return False
        if self.capacity <= 0:
            return False

        position = bisect.bisect_left(self._order, -key)
        self._order.insert(position, -key)
        self._records.insert(position, record)
        self._keys.add(key)

        if len(self._records) > self.capacity:
            evicted = -self._order.pop()
            self._records.pop()
            self._keys.discard(evicted)
            return evicted != key
        return True

    def extend(self, records: Iterable[Any]) -> int:
        """Add many readings; returns how many were admitted."""
        return sum(1 for record in records if self.add(record))

    def records(self) -> List[Dict[str, Any]]:
        """Readings newest first."""
        return list(self._records)

    def values(self, path: str) -> np.ndarray:
        """Finite numeric values of one parameter across the window."""
        values = [get_numeric(record, path) for record in self._records]
        return np.asarray([v for v in values if v is not None], dtype=float)

    @classmethod
    def from_records(cls, records: Iterable[Any], capacity: Optional[int] = None, cfg=CONFIG) -> 'HistoricalWindow':
        window = cls(capacity=capacity, cfg=cfg)
        window.extend(records)
        return window

    @classmethod
    def assemble(
        cls,
        repository=None,
        in_flight: Optional[Iterable[Any]] = None,
        capacity: Optional[int] = None,
        fetch_limit: Optional[int] = None,
        cfg: Dict[str, Any] = CONFIG,
        logger=None,
        on_error: Optional[Callable[[HistoryUnavailableError], None]] = None,
    ) -> 'HistoricalWindow':
        """
        Merge the persisted recent history with in-flight records.

        A failing fetch is logged and treated as empty history.

        Args:
            repository: Object with fetch_recent(limit) returning newest-first readings
            in_flight: Records processed earlier in the current run
            capacity: Window size (defaults to config)
            fetch_limit: Number of persisted readings to request
            cfg: Configuration dictionary
            logger: Logger for fetch failures
            on_error: Called with the HistoryUnavailableError when the fetch fails

        Returns:
            HistoricalWindow
        """
        logger = logger or get_logger('extrusion_analytics.window')
        window = cls(capacity=capacity, cfg=cfg)
        limit = int(fetch_limit if fetch_limit is not None else cfg['window']['fetch_limit'])

        try:
            persisted = fetch_history(repository, limit)
        except HistoryUnavailableError as error:
            logger.warning(f"{error}; continuing with in-flight data only")
            if on_error is not None:
                on_error(error)
            persisted = []

        admitted_db = window.extend(persisted)
        admitted_run = window.extend(in_flight or [])
        logger.debug(
            f"Historical window assembled: {len(window)} readings "
            f"({admitted_db} persisted, {admitted_run} in-flight)"
        )
        return window


class InFlightBuffer:
    """
    Append-only, capacity-bounded buffer of records processed in the current run.

    Appends are serialised with a lock so concurrent batches cannot interleave.
    """

    def __init__(self, capacity: Optional[int] = None, cfg: Dict[str, Any] = CONFIG):
        self.capacity = int(capacity if capacity is not None else cfg['window']['in_flight_capacity'])
        self._items: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def extend(self, records: Iterable[Dict[str, Any]]) -> None:
        """Append records and trim to the newest `capacity`."""
        with self._lock:
            self._items.extend(records)
            if len(self._items) > self.capacity:
                del self._items[:len(self._items) - self.capacity]

    def snapshot(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
