"""
Core module with base classes and design patterns.
"""

from .accessor import (
    ABSENT,
    get_nested_value,
    get_numeric,
    is_finite_number,
    parse_timestamp
)

from .exceptions import (
    ErrorCategory,
    AnalyticsError,
    InvalidBatchError,
    ValidationError,
    HistoryUnavailableError
)

from .logger import (
    LoggerManager,
    get_logger,
    setup_logging,
    get_performance_logger,
    PerformanceLogger,
    AnalyticsLogger
)

from .window import (
    HistoricalWindow,
    InFlightBuffer,
    fetch_history,
    is_plausible
)

from .base import (
    BaseComponent,
    BaseBatchScorer,
    BaseValidator,
    Observable,
    Observer,
    LoggingObserver
)

from .factory import ComponentFactory

from .builder import (
    EngineBuilder,
    AnalyticsEngine
)

from .chunker import BatchChunker

from .validators import (
    DataValidator,
    ConfigValidator,
    EquipmentValidator,
    validate_engine_inputs
)

__all__ = [
    # Accessor
    'ABSENT',
    'get_nested_value',
    'get_numeric',
    'is_finite_number',
    'parse_timestamp',
    # Errors
    'ErrorCategory',
    'AnalyticsError',
    'InvalidBatchError',
    'ValidationError',
    'HistoryUnavailableError',
    # Logging
    'LoggerManager',
    'get_logger',
    'setup_logging',
    'get_performance_logger',
    'PerformanceLogger',
    'AnalyticsLogger',
    # Window
    'HistoricalWindow',
    'InFlightBuffer',
    'fetch_history',
    'is_plausible',
    # Base classes
    'BaseComponent',
    'BaseBatchScorer',
    'BaseValidator',
    'Observable',
    'Observer',
    'LoggingObserver',
    # Factory
    'ComponentFactory',
    # Builders
    'EngineBuilder',
    'AnalyticsEngine',
    # Chunking
    'BatchChunker',
    # Validators
    'DataValidator',
    'ConfigValidator',
    'EquipmentValidator',
    'validate_engine_inputs'
]
