"""
Structured Value Accessor

Resolves dotted/indexed paths such as 'materials.extruder_A[2].actual_ratio'
against nested readings. Lookups never raise.
"""

import math
import re
from typing import Any, Optional

import numpy as np
import pandas as pd

_INDEXED_SEGMENT = re.compile(r'^(?P<name>[^\[\]]*)((\[\d+\])+)$')
_INDEX = re.compile(r'\[(\d+)\]')


class _Absent:
    """Sentinel for a path that does not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return 'ABSENT'


ABSENT = _Absent()


def _descend(current: Any, key: str) -> Any:
    if isinstance(current, dict):
        return current[key]
    return getattr(current, key)


def get_nested_value(record: Any, path: str, default: Any = ABSENT) -> Any:
    """
    Resolve a dotted/indexed path against a nested record.

    Args:
        record: Dict (or object) holding the reading
        path: Path using '.' for descent and 'name[i]' for indexing
        default: Value returned when any segment is missing

    Returns:
        The resolved value, or `default` (ABSENT unless given)
    """
    try:
        current = record
        for segment in path.split('.'):
            match = _INDEXED_SEGMENT.match(segment)
            if match:
                name = match.group('name')
                if name:
                    current = _descend(current, name)
                for index in _INDEX.findall(segment):
                    current = current[int(index)]
            else:
                current = _descend(current, segment)
            if current is None:
                return default
        return current
    except Exception:
        return default


def is_finite_number(value: Any) -> bool:
    """True for real, finite numbers (bools excluded)."""
    if isinstance(value, (bool, np.bool_)) or value is None:
        return False
    if isinstance(value, (int, float, np.integer, np.floating)):
        return math.isfinite(float(value))
    return False


def get_numeric(record: Any, path: str) -> Optional[float]:
    """Resolve a path and return it as a float, or None if not a finite number."""
    value = get_nested_value(record, path)
    if is_finite_number(value):
        return float(value)
    return None


def parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """
    Parse a reading timestamp.

    Timezone-aware values are converted to naive UTC so that keys compare
    consistently across sources.

    Returns:
        pd.Timestamp, or None when missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        ts = pd.to_datetime(value, errors='coerce')
    except (TypeError, ValueError, OverflowError):
        return None
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert('UTC').tz_localize(None)
    return ts
