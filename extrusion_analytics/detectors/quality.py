"""
Quality Scorer

Combines per-reading deviation-from-target scoring with population-level process
capability (Cp/Cpk) into a single 0-100 quality score:

- Deviation: 0-50 points from critical parameters vs their targets
- Capability: 0-50 points from thickness and throughput Cpk over the window
"""

from typing import Any, Dict, List, Optional

import numpy as np

from ..config import CONFIG
from ..core import BaseBatchScorer, ComponentFactory, HistoricalWindow
from ..core.accessor import get_numeric, is_finite_number
from ..core.window import is_plausible
from ..models import CapabilityIndex, QualityAnnotation
from ..stats import round_half_up, sample_std


def _as_tolerance(tolerance):
    """Accept (min, max) tuples or {'min': .., 'max': ..} dicts."""
    if isinstance(tolerance, dict):
        return float(tolerance['min']), float(tolerance['max'])
    low, high = tolerance
    return float(low), float(high)


def deviation_score(actual, target, tolerance) -> float:
    """
    Score how close a value is to its target.

    1.0 within half the tolerance width, then linear decay to 0.0 over the next
    half-width.

    Args:
        actual: Measured value
        target: Target value
        tolerance: (min, max) offsets around the target

    Returns:
        float: Score in [0, 1]
    """
    if not is_finite_number(actual) or not is_finite_number(target):
        return 0.0

    low, high = _as_tolerance(tolerance)
    half_width = (high - low) / 2
    if half_width == 0:
        return 0.0

    deviation = abs(actual - target)
    if deviation <= half_width:
        return 1.0
    return max(0.0, 1.0 - (deviation - half_width) / half_width)


def process_capability(values, lsl, usl, min_points=None) -> CapabilityIndex:
    """
    Cp and Cpk of a sample against specification limits.

    Both are zero for fewer than `min_points` values, a zero standard deviation,
    missing limits, or USL <= LSL. Cpk is floored at zero.

    Args:
        values: Sample of measurements
        lsl: Lower specification limit
        usl: Upper specification limit
        min_points: Minimum sample size (defaults to config)

    Returns:
        CapabilityIndex
    """
    if min_points is None:
        min_points = CONFIG['quality']['capability_min_points']

    data = np.asarray(values, dtype=float)
    if data.size < min_points:
        return CapabilityIndex()
    if not is_finite_number(lsl) or not is_finite_number(usl) or usl <= lsl:
        return CapabilityIndex()

    sigma = sample_std(data)
    if sigma == 0:
        return CapabilityIndex()

    mean = float(np.mean(data))
    cp = (usl - lsl) / (6 * sigma)
    cpu = (usl - mean) / (3 * sigma)
    cpl = (mean - lsl) / (3 * sigma)
    return CapabilityIndex(cp=float(cp), cpk=float(max(min(cpu, cpl), 0.0)))


def cpk_to_score(cpk: float, cfg=CONFIG) -> float:
    """Map Cpk linearly from the incapable bound (0 points) to the capable bound (full points)."""
    q = cfg['quality']
    floor, target, weight = q['cpk_floor'], q['cpk_target'], q['capability_weight']
    return min(max((cpk - floor) / (target - floor) * weight, 0.0), weight)


def _window_values(window, path: str, cfg) -> np.ndarray:
    if window is None:
        return np.array([], dtype=float)
    if isinstance(window, HistoricalWindow):
        return window.values(path)
    values = [get_numeric(r, path) for r in window if is_plausible(r, cfg)]
    return np.asarray([v for v in values if v is not None], dtype=float)


def score_quality(
    reading: Dict[str, Any],
    tolerances: Optional[Dict[str, Any]] = None,
    window=None,
    cfg=CONFIG,
) -> QualityAnnotation:
    """
    Quality score of one reading.

    Args:
        reading: Reading dict
        tolerances: Per-parameter overrides of the default tolerances
        window: HistoricalWindow or list of prior readings (plausibility gated)
        cfg: Configuration dictionary

    Returns:
        QualityAnnotation
    """
    q = cfg['quality']
    effective = {**q['tolerances'], **(tolerances or {})}

    details = {}
    for parameter, target_path in q['targets'].items():
        actual = get_numeric(reading, parameter)
        target = get_numeric(reading, target_path)
        if actual is None or target is None:
            continue
        details[parameter] = {
            'actual': actual,
            'target': target,
            'score': deviation_score(actual, target, effective[parameter]),
        }

    if details:
        deviation = float(np.mean([d['score'] for d in details.values()])) * q['deviation_weight']
    else:
        deviation = 0.0

    capability = {}
    for name, parameter in q['capability_parameters'].items():
        target = get_numeric(reading, q['targets'][parameter])
        low, high = _as_tolerance(effective[parameter])
        lsl = target + low if target is not None else None
        usl = target + high if target is not None else None
        capability[name] = process_capability(
            _window_values(window, parameter, cfg), lsl, usl, q['capability_min_points']
        )

    capability_score = float(np.mean([cpk_to_score(c.cpk, cfg) for c in capability.values()]))

    return QualityAnnotation(
        score=round_half_up(deviation + capability_score),
        deviation_detail=details,
        process_capability=capability,
        deviation_score=deviation,
        capability_score=capability_score,
    )


class QualityScorer(BaseBatchScorer):
    """
    Quality scorer over batches of readings.
    """

    def __init__(self, config: Dict[str, Any] = None, repository=None, tolerances: Optional[Dict[str, Any]] = None):
        """Initialize quality scorer."""
        super().__init__('quality', config, repository)
        self.tolerances = dict(tolerances or {})

    def score(self, reading: Dict[str, Any], tolerances: Optional[Dict[str, Any]] = None, window=None) -> QualityAnnotation:
        """Score one reading (see score_quality)."""
        merged = {**self.tolerances, **(tolerances or {})}
        return score_quality(reading, merged, window, self.config)

    def neutral_fields(self) -> Dict[str, Any]:
        return QualityAnnotation.neutral().to_record_fields()

    def annotate(self, record, window, context):
        return self.score(record, window=window).to_record_fields()

    def score_batch(
        self,
        readings: List[Dict[str, Any]],
        in_flight: Optional[List[Dict[str, Any]]] = None,
        window: Optional[HistoricalWindow] = None,
    ) -> List[Dict[str, Any]]:
        """
        Annotate a batch with quality fields.

        Implausible-throughput readings and failing records get a zero score with
        empty detail.
        """
        return self.process_batch(readings, in_flight=in_flight, window=window)


ComponentFactory.register('quality', QualityScorer)
