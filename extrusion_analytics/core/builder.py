"""
Builder Pattern for Engine Configuration

Fluent interface for assembling the analytics engine from registered components
and its collaborators.
"""

import threading
from typing import Any, Dict, List, Optional

from ..config import CONFIG, merge_config
from .accessor import parse_timestamp
from .base import BaseValidator, Observable, Observer
from .chunker import BatchChunker
from .exceptions import HistoryUnavailableError, ValidationError
from .factory import ComponentFactory
from .logger import AnalyticsLogger, PerformanceLogger, get_logger
from .validators import ConfigValidator, validate_engine_inputs
from .window import HistoricalWindow, InFlightBuffer, fetch_history, is_plausible


class EngineBuilder:
    """
    Builder for constructing the analytics engine.

    Builder Pattern: Step-by-step construction with fluent interface.
    """

    def __init__(self):
        """Initialize builder with default configuration."""
        self.reset()

    def with_config(self, config: Dict[str, Any]) -> 'EngineBuilder':
        """
        Merge configuration overrides.

        Args:
            config: Partial configuration dictionary

        Returns:
            self (for fluent interface)
        """
        self._config = merge_config(config, self._config)
        return self

    def with_repository(self, repository) -> 'EngineBuilder':
        """
        Set the persisted-readings repository.

        Args:
            repository: ReadingRepository

        Returns:
            self (for fluent interface)
        """
        self._repository = repository
        return self

    def with_registry(self, registry) -> 'EngineBuilder':
        """
        Set the equipment registry.

        Args:
            registry: EquipmentRegistry

        Returns:
            self (for fluent interface)
        """
        self._registry = registry
        return self

    def with_tolerances(self, tolerances: Dict[str, Any]) -> 'EngineBuilder':
        """Per-parameter quality tolerance overrides."""
        self._tolerances.update(tolerances)
        return self

    def with_observer(self, observer: Observer) -> 'EngineBuilder':
        """
        Add observer for events.

        Args:
            observer: Observer instance

        Returns:
            self (for fluent interface)
        """
        self._observers.append(observer)
        return self

    def verbose(self, enabled: bool = True) -> 'EngineBuilder':
        """
        Enable/disable verbose output.

        Args:
            enabled: Verbose flag

        Returns:
            self (for fluent interface)
        """
        self._verbose = enabled
        return self

    def build(self) -> 'AnalyticsEngine':
        """
        Build and return engine instance.

        Returns:
            Configured engine

        Raises:
            ValidationError: If the merged configuration is invalid
        """
        is_valid, errors = ConfigValidator.validate_config(self._config)
        if not is_valid:
            raise ValidationError("Invalid engine configuration", errors)

        return AnalyticsEngine(
            anomaly_detector=ComponentFactory.create('anomaly', self._config, repository=self._repository),
            quality_scorer=ComponentFactory.create(
                'quality', self._config, repository=self._repository, tolerances=self._tolerances
            ),
            maintenance_predictor=ComponentFactory.create('maintenance', self._config, registry=self._registry),
            repository=self._repository,
            registry=self._registry,
            observers=self._observers,
            config=self._config,
            verbose=self._verbose
        )

    def reset(self) -> 'EngineBuilder':
        """Reset builder to initial state."""
        self._config = merge_config()
        self._repository = None
        self._registry = None
        self._tolerances = {}
        self._observers = []
        self._verbose = True
        return self


class AnalyticsEngine:
    """
    Composed analytics engine.

    Orchestrates anomaly detection and quality scoring over batches sharing one
    historical window, and maintenance prediction over the equipment registry.
    """

    def __init__(
        self,
        anomaly_detector,
        quality_scorer,
        maintenance_predictor,
        repository=None,
        registry=None,
        observers: Optional[List[Observer]] = None,
        config: Optional[Dict[str, Any]] = None,
        verbose: bool = True
    ):
        """
        Initialize engine.

        Args:
            anomaly_detector: AnomalyDetector instance
            quality_scorer: QualityScorer instance
            maintenance_predictor: MaintenancePredictor instance
            repository: ReadingRepository (optional)
            registry: EquipmentRegistry (optional)
            observers: List of observer instances
            config: Configuration dictionary
            verbose: Verbose output flag
        """
        self.anomaly_detector = anomaly_detector
        self.quality_scorer = quality_scorer
        self.maintenance_predictor = maintenance_predictor
        self.repository = repository
        self.registry = registry
        self.config = config or CONFIG
        self.verbose = verbose

        self.in_flight = InFlightBuffer(cfg=self.config)
        self.logger = get_logger('extrusion_analytics.engine')
        self.analytics_logger = AnalyticsLogger()
        self.performance = PerformanceLogger()

        # Make engine observable
        self.events = Observable()
        for observer in observers or []:
            self.events.attach(observer)

    def _history_unavailable(self, error: HistoryUnavailableError) -> None:
        self.events.notify('history_unavailable', {'error': str(error)})

    def assemble_window(self) -> HistoricalWindow:
        """Persisted history merged with this run's in-flight records."""
        return HistoricalWindow.assemble(
            repository=self.repository,
            in_flight=self.in_flight.snapshot(),
            cfg=self.config,
            logger=self.logger,
            on_error=self._history_unavailable,
        )

    def latest_reading(self) -> Optional[Dict[str, Any]]:
        """Newest persisted reading, or None when there is none or the fetch fails."""
        try:
            latest = fetch_history(self.repository, 1)
        except HistoryUnavailableError as error:
            self.logger.warning(f"{error}; evaluating equipment without a reading")
            self._history_unavailable(error)
            return None
        return latest[0] if latest else None

    def process_batch(self, readings: List[Dict[str, Any]], persist: bool = True) -> List[Dict[str, Any]]:
        """
        Run anomaly detection then quality scoring on one batch.

        Args:
            readings: List of reading dicts (not modified)
            persist: Insert scored readings with valid timestamps into the repository

        Returns:
            Annotated copies in input order

        Raises:
            InvalidBatchError: If readings is not a list
        """
        validate_engine_inputs(readings)
        if not readings:
            return []

        timer = f"process_batch:{threading.get_ident()}"
        self.performance.start_timer(timer)
        window = self.assemble_window()

        annotated, anomaly_stats = self.anomaly_detector.run_batch(readings, window=window)
        annotated, quality_stats = self.quality_scorer.run_batch(annotated, window=window)

        for component, stats in ((self.anomaly_detector, anomaly_stats), (self.quality_scorer, quality_stats)):
            self.analytics_logger.log_batch(component.name, **stats)
            if stats['failed']:
                self.events.notify('record_failed', {'component': component.name, 'count': stats['failed']})

        timestamp_field = self.config['timestamp_field']
        for record in annotated:
            if record.get('is_anomaly'):
                self.analytics_logger.log_anomaly(
                    record.get(timestamp_field), record['anomaly_score'], record['anomaly_parameters']
                )

        timestamped = [r for r in annotated if parse_timestamp(r.get(timestamp_field)) is not None]
        self.in_flight.extend(r for r in timestamped if is_plausible(r, self.config))

        stored = 0
        if persist and self.repository is not None:
            stored = self.repository.insert(timestamped)

        duration = self.performance.stop_timer(timer)
        self.events.notify('batch_complete', {
            'records': len(annotated),
            'anomalies': sum(1 for r in annotated if r.get('is_anomaly')),
            'persisted': stored,
            'window': len(window),
            'seconds': round(duration, 3),
        })

        if self.verbose:
            self.logger.info(f"Batch of {len(annotated)} processed (window {len(window)}, persisted {stored})")

        return annotated

    def process_readings(self, readings: List[Dict[str, Any]], batch_size: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Process a large collection in consecutive batches.

        Earlier batches become in-flight history for later ones.

        Args:
            readings: List of reading dicts
            batch_size: Readings per batch (defaults to config)

        Returns:
            All annotated readings in input order
        """
        BaseValidator.validate_batch(readings)
        chunker = BatchChunker(batch_size or self.config['batch_size'])

        if self.verbose:
            self.logger.info(f"Processing {len(readings)} readings in {chunker.num_batches(len(readings))} batches")

        results = chunker.process_in_batches(readings, self.process_batch)

        if self.verbose:
            self.analytics_logger.log_summary()
        return results

    def predict_maintenance(
        self,
        readings_by_id: Optional[Dict[str, Dict[str, Any]]] = None,
        now=None
    ) -> List[Dict[str, Any]]:
        """
        Maintenance predictions for every registered unit.

        Units without a mapped reading are evaluated against the latest persisted
        reading.

        Args:
            readings_by_id: Current reading per equipment id
            now: Evaluation time

        Returns:
            Equipment dicts with prediction fields

        Raises:
            ValidationError: If no equipment registry is configured
        """
        if self.registry is None:
            raise ValidationError("No equipment registry configured")

        equipment = self.registry.fetch_all()
        default_reading = self.latest_reading()

        timer = f"predict_maintenance:{threading.get_ident()}"
        self.performance.start_timer(timer)
        results = self.maintenance_predictor.predict_batch(equipment, readings_by_id, now, default_reading)
        self.performance.stop_timer(timer)

        failed = 0
        for result in results:
            prediction = result.get('maintenance_prediction')
            if prediction is None:
                failed += 1
                self.events.notify('record_failed', {'component': 'maintenance', 'equipment': result.get('id', result.get('_id'))})
                continue
            self.analytics_logger.log_risk(result.get('id', result.get('_id')), prediction['risk_level'], result['health_score'])

        self.events.notify('maintenance_complete', {
            'equipment': len(results),
            'failed': failed,
        })
        return results
