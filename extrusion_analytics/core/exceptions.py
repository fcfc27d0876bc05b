"""
Error Taxonomy for the Analytics Core

Only structurally invalid callers see these raised; per-record problems are absorbed
into neutral annotations by the batch operations.
"""

from datetime import datetime
from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Categories of errors for appropriate handling"""
    MALFORMED_INPUT = "malformed_input"
    HISTORY_UNAVAILABLE = "history_unavailable"
    COMPUTATION = "computation"
    CONFIGURATION = "configuration"


class AnalyticsError(Exception):
    """Base exception for analytics errors"""
    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.COMPUTATION):
        super().__init__(message)
        self.category = category
        self.timestamp = datetime.now()


class InvalidBatchError(AnalyticsError, TypeError):
    """Batch argument is not a list of readings"""
    def __init__(self, received: object):
        super().__init__(
            f"Expected a list of readings, got {type(received).__name__}",
            ErrorCategory.MALFORMED_INPUT,
        )
        self.received_type = type(received)


class ValidationError(AnalyticsError, ValueError):
    """Configuration or reference data failed validation"""
    def __init__(self, message: str = "Validation error", errors: Optional[list] = None):
        super().__init__(message, ErrorCategory.CONFIGURATION)
        self.errors = list(errors or [])


class HistoryUnavailableError(AnalyticsError):
    """Persisted history could not be fetched"""
    def __init__(self, message: str = "Historical readings unavailable"):
        super().__init__(message, ErrorCategory.HISTORY_UNAVAILABLE)
