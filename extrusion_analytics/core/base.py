"""
Base Classes and Abstract Interfaces

Provides the abstraction layer shared by the analytics components and the batch
template that gives every reading-level component the same plausibility gate and
per-record fault isolation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from ..config import CONFIG
from .exceptions import InvalidBatchError
from .logger import get_logger
from .window import HistoricalWindow, is_plausible


class BaseComponent(ABC):
    """
    Abstract base class for analytics components.

    Strategy Pattern: Components are interchangeable behind the engine.
    """

    def __init__(self, name: str, config: Optional[Dict[str, Any]] = None):
        """
        Initialize component.

        Args:
            name: Component identifier
            config: Full configuration dictionary
        """
        self.name = name
        self.config = config or CONFIG
        self.logger = get_logger(f'extrusion_analytics.{name}')


class BaseBatchScorer(BaseComponent):
    """
    Template for components that annotate batches of readings.

    Template Method Pattern: gate -> annotate -> isolate failures.
    """

    def __init__(self, name: str, config: Optional[Dict[str, Any]] = None, repository=None):
        super().__init__(name, config)
        self.repository = repository
        self.last_batch_stats = {'total': 0, 'skipped': 0, 'failed': 0}

    @abstractmethod
    def neutral_fields(self) -> Dict[str, Any]:
        """Record fields of the neutral annotation."""
        pass

    @abstractmethod
    def annotate(self, record: Dict[str, Any], window: HistoricalWindow, context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Compute the annotation fields for one plausible record.

        Args:
            record: Reading
            window: Comparison population
            context: Values prepared once per batch by prepare()

        Returns:
            Record fields to merge into the annotated copy
        """
        pass

    def prepare(self, window: HistoricalWindow) -> Dict[str, Any]:
        """Per-batch preparation hook (e.g. adaptive thresholds)."""
        return {}

    def passthrough(self, record: Dict[str, Any]) -> bool:
        """True when the record should be returned untouched."""
        return False

    def resolve_window(self, in_flight=None, window=None) -> HistoricalWindow:
        """Use the supplied window (lists are admitted through the gate) or assemble one."""
        if isinstance(window, HistoricalWindow):
            return window
        if window is not None:
            return HistoricalWindow.from_records(window, cfg=self.config)
        return HistoricalWindow.assemble(
            repository=self.repository,
            in_flight=in_flight,
            cfg=self.config,
            logger=self.logger,
        )

    def process_batch(
        self,
        readings: List[Dict[str, Any]],
        in_flight: Optional[List[Dict[str, Any]]] = None,
        window: Optional[HistoricalWindow] = None,
    ) -> List[Dict[str, Any]]:
        """
        Annotate a batch of readings.

        Args:
            readings: List of reading dicts
            in_flight: Records already processed earlier in the run
            window: Pre-assembled comparison population (skips the fetch)

        Returns:
            List of annotated copies in input order

        Raises:
            InvalidBatchError: If readings is not a list
        """
        results, self.last_batch_stats = self.run_batch(readings, in_flight, window)
        return results

    def run_batch(self, readings, in_flight=None, window=None) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        """
        Annotate a batch and return its counts alongside the results.

        Leaves last_batch_stats untouched.

        Returns:
            tuple: (annotated copies, {'total', 'skipped', 'failed'})
        """
        BaseValidator.validate_batch(readings)
        if not readings:
            return [], {'total': 0, 'skipped': 0, 'failed': 0}

        window = self.resolve_window(in_flight, window)
        context = self.prepare(window)

        results = []
        skipped = failed = 0
        for record in readings:
            if self.passthrough(record):
                results.append(record)
                continue
            if not is_plausible(record, self.config):
                skipped += 1
                results.append({**(record if isinstance(record, dict) else {}), **self.neutral_fields()})
                continue
            try:
                fields = self.annotate(record, window, context)
                results.append({**record, **fields})
            except Exception as e:
                failed += 1
                self.logger.error(f"{self.name} failed for record {record.get('timestamp')}: {e}")
                results.append({**record, **self.neutral_fields()})

        return results, {'total': len(readings), 'skipped': skipped, 'failed': failed}


class BaseValidator:
    """
    Validation utilities shared by components.
    """

    @staticmethod
    def validate_batch(readings: Any) -> None:
        """Raise InvalidBatchError unless readings is a list."""
        if not isinstance(readings, list):
            raise InvalidBatchError(readings)

    @staticmethod
    def validate_numeric_range(value: float, min_val: float, max_val: float, name: str) -> None:
        """Validate numeric value in range."""
        if not (min_val <= value <= max_val):
            raise ValueError(f"{name} must be between {min_val} and {max_val}, got {value}")


class Observable:
    """
    Observer pattern for event notifications.
    """

    def __init__(self):
        """Initialize with empty observers list."""
        self._observers: List['Observer'] = []

    def attach(self, observer: 'Observer') -> None:
        """Attach observer."""
        if observer not in self._observers:
            self._observers.append(observer)

    def notify(self, event: str, data: Any) -> None:
        """Notify all observers."""
        for observer in self._observers:
            observer.update(event, data)


class Observer(ABC):
    """
    Observer interface for event handling.
    """

    @abstractmethod
    def update(self, event: str, data: Any) -> None:
        """Handle event notification."""
        pass


class LoggingObserver(Observer):
    """
    Observer that logs events.
    """

    def __init__(self, logger=None):
        """Initialize with logger."""
        self.logger = logger or get_logger('extrusion_analytics.events')

    def update(self, event: str, data: Any) -> None:
        """Log event."""
        self.logger.info(f"Event: {event} | Data: {data}")
