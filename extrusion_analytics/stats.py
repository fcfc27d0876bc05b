"""
Robust Statistics Module

Pure functions over numeric samples:
- Population z-scores
- Trimmed median-absolute-deviation (MAD) scores
- Nearest-rank percentile
- Process-capability helpers (sample standard deviation, rounding)
"""

import math

import numpy as np
from scipy import stats as sps

from .config import CONFIG


def _as_array(values):
    """Convert to a 1-D float array."""
    return np.asarray(list(values) if not isinstance(values, np.ndarray) else values, dtype=float).ravel()


def zscores(values):
    """
    Compute population z-scores (ddof=0).

    Args:
        values: Sequence of numbers

    Returns:
        np.ndarray: z-score per value; all zeros when the standard deviation is zero
    """
    data = _as_array(values)
    if data.size == 0:
        return data
    if np.std(data) == 0:
        return np.zeros_like(data)
    return sps.zscore(data, ddof=0)


def upper_median(sorted_values):
    """Middle order statistic of sorted data (upper of the two for even counts)."""
    return sorted_values[len(sorted_values) // 2]


def trimmed_mad(values, trim=None):
    """
    Median absolute deviation with the extreme `trim` fraction dropped from each tail.

    Args:
        values: Sequence of numbers
        trim: Fraction of the sorted absolute deviations to drop per tail

    Returns:
        tuple: (median, mad, absolute_deviations)
    """
    if trim is None:
        trim = CONFIG['anomaly']['mad_trim']

    data = _as_array(values)
    if data.size == 0:
        return 0.0, 0.0, data

    median = upper_median(np.sort(data))
    abs_dev = np.abs(data - median)
    sorted_dev = np.sort(abs_dev)

    trim_count = int(math.floor(sorted_dev.size * trim))
    trimmed = sorted_dev[trim_count:sorted_dev.size - trim_count]

    mad = upper_median(trimmed) if trimmed.size > 0 else 0.0
    if mad == 0:
        # Fall back to the untrimmed median deviation
        mad = upper_median(sorted_dev)

    return float(median), float(mad), abs_dev


def mad_scores(values, trim=None, consistency=None):
    """
    Compute robust MAD scores: |x - median| / (MAD * 1.4826).

    Scores are scale invariant. All zeros when the MAD is zero.

    Args:
        values: Sequence of numbers
        trim: Tail trim fraction for the deviation population
        consistency: Normal-consistency constant

    Returns:
        np.ndarray: MAD score per value
    """
    if consistency is None:
        consistency = CONFIG['anomaly']['mad_consistency']

    _, mad, abs_dev = trimmed_mad(values, trim)
    if mad == 0:
        return np.zeros_like(abs_dev)
    return abs_dev / (mad * consistency)


def percentile(values, p):
    """
    Nearest-rank percentile.

    Args:
        values: Sequence of numbers; non-finite entries are ignored
        p: Percentile in [0, 100]

    Returns:
        float: Value at rank ceil(p/100 * n), or 0.0 for empty input
    """
    data = _as_array(values)
    data = np.sort(data[np.isfinite(data)])
    if data.size == 0:
        return 0.0

    index = int(math.ceil(p / 100.0 * data.size)) - 1
    index = min(max(index, 0), data.size - 1)
    return float(data[index])


def sample_std(values):
    """Sample standard deviation (ddof=1); 0.0 for fewer than two values."""
    data = _as_array(values)
    if data.size < 2:
        return 0.0
    return float(np.std(data, ddof=1))


def round_half_up(value):
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))
