"""
Logging Infrastructure

Console and optional file logging for the analytics core, plus batch timing and
running counters of analytics outcomes.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

from ..config import CONFIG


class LoggerManager:
    """
    Centralized logging management.

    Singleton Pattern: handlers are attached once, to the package logger. Component
    loggers are its children and propagate to it.
    """

    ROOT = 'extrusion_analytics'

    _instance: Optional['LoggerManager'] = None

    def __new__(cls):
        """Singleton implementation."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Read settings from CONFIG['logging'] on first use."""
        if self._initialized:
            return

        settings = CONFIG['logging']
        self.loggers: Dict[str, logging.Logger] = {}
        self.log_dir = Path(settings['log_dir'])
        self.log_to_file = settings['log_to_file']
        self.level = getattr(logging, settings['level'], logging.INFO)
        self.console_format = settings['console_format']
        self.file_format = settings['file_format']
        self.date_format = settings['date_format']
        self._configured = False
        self._initialized = True

    def _configure_root(self) -> logging.Logger:
        """Attach console (and file) handlers to the package logger."""
        root = logging.getLogger(self.ROOT)
        if self._configured:
            return root

        root.handlers.clear()
        root.setLevel(logging.DEBUG if self.log_to_file else self.level)

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(self.level)
        console.setFormatter(logging.Formatter(self.console_format))
        root.addHandler(console)

        if self.log_to_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            path = self.log_dir / f"{self.ROOT}_{datetime.now():%Y%m%d}.log"
            file_handler = logging.FileHandler(path, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(self.file_format, datefmt=self.date_format))
            root.addHandler(file_handler)

        self._configured = True
        return root

    def get_logger(self, name: str, level: Optional[int] = None) -> logging.Logger:
        """
        Get or create logger.

        Names outside the package namespace are nested under it, so every logger
        shares the package handlers.

        Args:
            name: Logger name
            level: Per-logger level override

        Returns:
            Configured logger
        """
        if name in self.loggers:
            return self.loggers[name]

        self._configure_root()
        qualified = name if name == self.ROOT or name.startswith(self.ROOT + '.') else f'{self.ROOT}.{name}'
        logger = logging.getLogger(qualified)
        if level is not None:
            logger.setLevel(level)

        self.loggers[name] = logger
        return logger


def get_logger(name: str, **kwargs) -> logging.Logger:
    """Convenience function to get logger."""
    return LoggerManager().get_logger(name, **kwargs)


class PerformanceLogger:
    """
    Batch timing logger.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize with logger."""
        self.logger = logger or get_logger('extrusion_analytics.performance')
        self.timings = {}

    def start_timer(self, operation: str) -> None:
        """Start timing an operation."""
        self.timings[operation] = datetime.now()

    def stop_timer(self, operation: str) -> float:
        """
        Stop timer and log duration.

        Args:
            operation: Operation name

        Returns:
            Duration in seconds
        """
        if operation not in self.timings:
            self.logger.warning(f"No timer found for {operation}")
            return 0.0

        duration = (datetime.now() - self.timings.pop(operation)).total_seconds()
        self.logger.debug(f"{operation} took {duration:.3f} seconds")
        return duration


class AnalyticsLogger:
    """
    Running counters of analytics outcomes.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize with logger."""
        self.logger = logger or get_logger('extrusion_analytics.analytics')
        self.reset_stats()

    def log_batch(self, component: str, total: int, skipped: int, failed: int) -> None:
        """Record one batch of a component."""
        self.stats['records'] += total
        self.stats['skipped'] += skipped
        self.stats['failed'] += failed
        self.logger.info(
            f"{component}: processed {total} records "
            f"({skipped} implausible, {failed} failed)"
        )

    def log_anomaly(self, timestamp: Any, score: float, parameters: list) -> None:
        """Record a flagged reading."""
        self.stats['anomalies'] += 1
        self.logger.warning(
            f"Anomaly detected - Timestamp: {timestamp}, Score: {score:.3f}, "
            f"Parameters: {parameters}"
        )

    def log_risk(self, equipment_id: str, risk_level: str, health_score: float) -> None:
        """Record a maintenance risk tier."""
        by_risk = self.stats['by_risk']
        by_risk[risk_level] = by_risk.get(risk_level, 0) + 1
        if risk_level in ('high', 'critical'):
            self.logger.warning(
                f"Maintenance risk - Equipment: {equipment_id}, Risk: {risk_level}, "
                f"Health: {health_score:.2f}"
            )

    def log_summary(self) -> None:
        """Log run summary."""
        self.logger.info("=" * 60)
        self.logger.info("ANALYTICS SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Records: {self.stats['records']}")
        self.logger.info(f"Implausible: {self.stats['skipped']}")
        self.logger.info(f"Failed: {self.stats['failed']}")
        self.logger.info(f"Anomalies: {self.stats['anomalies']}")
        self.logger.info(f"By risk: {self.stats['by_risk']}")
        self.logger.info("=" * 60)

    def reset_stats(self) -> None:
        """Reset statistics."""
        self.stats = {
            'records': 0,
            'skipped': 0,
            'failed': 0,
            'anomalies': 0,
            'by_risk': {}
        }


def setup_logging(log_dir: Path = Path('logs'), log_to_file: bool = True, level: Optional[int] = None) -> None:
    """Set up logging infrastructure."""
    LoggerManager._instance = None  # Reset singleton
    manager = LoggerManager()
    manager.log_dir = Path(log_dir)
    manager.log_to_file = log_to_file
    if level is not None:
        manager.level = level


def get_performance_logger() -> PerformanceLogger:
    """Get performance logger."""
    return PerformanceLogger()
