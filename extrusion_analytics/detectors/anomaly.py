"""
Anomaly Detector - Z-Score + MAD

Per-parameter outlier scoring against the historical window, or against fixed /
target-relative ranges while the window is too small (cold start). A reading is
anomalous when enough parameters are independently flagged.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..config import CONFIG
from ..core import BaseBatchScorer, ComponentFactory, HistoricalWindow, is_plausible
from ..core.accessor import get_numeric
from ..models import AnomalyAnnotation, is_anomaly_annotated
from ..stats import mad_scores, percentile, zscores


def _target_or_default(reading, path, default):
    """Target lookup where a missing or zero target falls back to the default."""
    target = get_numeric(reading, path)
    return target if target else default


def cold_start_range(parameter: str, value: float, reading: Dict[str, Any], cfg=CONFIG) -> Tuple[float, float]:
    """
    Normal range used when the window holds too little history.

    Args:
        parameter: Parameter path
        value: Current value of the parameter
        reading: Full reading (for targets and setpoints)
        cfg: Configuration dictionary

    Returns:
        tuple: (min, max)
    """
    cs = cfg['cold_start']

    if 'pressure' in parameter:
        return cs['pressure']
    if 'temperature' in parameter:
        return cs['temperature']
    if 'blower_load' in parameter:
        return cs['blower_load']
    if parameter == 'total_output':
        return cs['total_output']
    if parameter == 'actual_thickness':
        target = _target_or_default(reading, 'target_thickness', cs['thickness_default_target'])
        return target - cs['thickness_margin'], target + cs['thickness_margin']
    if 'actual_ratio' in parameter:
        target = _target_or_default(reading, parameter.replace('actual_ratio', 'target_ratio'), 0.0)
        return target - cs['ratio_margin'], target + cs['ratio_margin']
    if 'blower_exhaust_actual' in parameter:
        setpoint = _target_or_default(reading, 'blower_exhaust_setpoint', cs['exhaust_default_setpoint'])
        return setpoint - cs['exhaust_margin'], setpoint + cs['exhaust_margin']
    if 'heating_zones' in parameter:
        head, _, tail = parameter.rpartition('actual')
        setpoint = _target_or_default(reading, head + 'setpoint' + tail, 0.0)
        return setpoint - cs['heating_zone_margin'], setpoint + cs['heating_zone_margin']

    # Unmatched: relative to the observed value itself
    frac = cs['relative_fraction']
    low, high = value * (1 - frac), value * (1 + frac)
    return min(low, high), max(low, high)


def cold_start_scores(value: float, normal_range: Tuple[float, float]) -> Tuple[float, float]:
    """
    Pseudo z-score and pseudo MAD score against a normal range.

    pseudo z: distance from the midpoint in units of width / 6
    pseudo MAD: excess beyond the violated bound, relative to half the bound

    Returns:
        tuple: (z, mad)
    """
    low, high = normal_range
    width = high - low
    center = (high + low) / 2
    z = 0.0 if width == 0 else abs(value - center) / (width / 6)

    if value < low:
        mad = (low - value) / ((low - low * 0.5) or 1.0)
    elif value > high:
        mad = (value - high) / ((high * 1.5 - high) or 1.0)
    else:
        mad = 0.0
    return float(z), float(mad)


def warm_scores(value: float, history: np.ndarray, cfg=CONFIG) -> Tuple[float, float]:
    """
    True z-score and MAD score of `value` appended to its history.

    Returns:
        tuple: (z, mad)
    """
    sample = np.append(np.asarray(history, dtype=float), value)
    z = zscores(sample)[-1]
    mad = mad_scores(
        sample,
        trim=cfg['anomaly']['mad_trim'],
        consistency=cfg['anomaly']['mad_consistency'],
    )[-1]
    return float(z), float(mad)


def _population(window, cfg=CONFIG) -> list:
    """Records of a window; plain lists go through the throughput gate."""
    if window is None:
        return []
    if isinstance(window, HistoricalWindow):
        return window.records()
    return [record for record in window if is_plausible(record, cfg)]


def _historical_values(window, parameter: str, cfg=CONFIG) -> np.ndarray:
    if isinstance(window, HistoricalWindow):
        return window.values(parameter)
    values = [get_numeric(record, parameter) for record in _population(window, cfg)]
    return np.asarray([v for v in values if v is not None], dtype=float)


def detect_anomalies(
    reading: Dict[str, Any],
    parameters: Optional[Iterable[str]] = None,
    window=None,
    z_threshold: Optional[float] = None,
    mad_threshold: Optional[float] = None,
    cfg=CONFIG,
) -> AnomalyAnnotation:
    """
    Score one reading across parameters.

    Args:
        reading: Reading dict
        parameters: Parameter paths (defaults to the configured list)
        window: HistoricalWindow or list of prior readings
        z_threshold: Z-score threshold
        mad_threshold: MAD score threshold
        cfg: Configuration dictionary

    Returns:
        AnomalyAnnotation
    """
    acfg = cfg['anomaly']
    z_threshold = acfg['z_threshold'] if z_threshold is None else z_threshold
    mad_threshold = acfg['mad_threshold'] if mad_threshold is None else mad_threshold

    if not isinstance(reading, dict) or not reading:
        return AnomalyAnnotation.neutral()
    if is_anomaly_annotated(reading):
        return AnomalyAnnotation.from_record(reading)

    parameters = list(parameters) if parameters else list(acfg['parameters'])

    details = {}
    max_z = 0.0
    max_mad = 0.0
    for parameter in parameters:
        value = get_numeric(reading, parameter)
        if value is None:
            continue

        history = _historical_values(window, parameter, cfg)
        if history.size < acfg['min_history']:
            normal_range = cold_start_range(parameter, value, reading, cfg)
            z, mad = cold_start_scores(value, normal_range)
            entry = {'value': value, 'normal_range': normal_range, 'z_score': z, 'mad_score': mad}
        else:
            z, mad = warm_scores(value, history, cfg)
            entry = {'value': value, 'z_score': z, 'mad_score': mad}

        entry['is_outlier'] = abs(z) > z_threshold or mad > mad_threshold
        details[parameter] = entry
        max_z = max(max_z, abs(z))
        max_mad = max(max_mad, mad)

    if not details:
        return AnomalyAnnotation.neutral()

    outliers = [p for p, entry in details.items() if entry['is_outlier']]
    scale = acfg['score_scale']
    z_norm = min(max_z / (z_threshold * scale), 1.0)
    mad_norm = min(max_mad / (mad_threshold * scale), 1.0)

    return AnomalyAnnotation(
        score=(z_norm + mad_norm) / 2,
        is_anomaly=len(outliers) >= acfg['min_outlier_parameters'],
        parameters=outliers,
        method='Z-Score' if max_z > max_mad else 'MAD',
        details=details,
    )


def adaptive_thresholds(window, cfg=CONFIG) -> Tuple[float, float]:
    """
    Thresholds tuned to the window's reference parameter.

    With enough history, the 95th percentile of the reference parameter's own
    z / MAD scores raises the static floors (MAD capped).

    Returns:
        tuple: (z_threshold, mad_threshold)
    """
    acfg = cfg['anomaly']
    adaptive = acfg['adaptive']
    z_threshold = acfg['z_threshold']
    mad_threshold = acfg['mad_threshold']

    population = _population(window, cfg)
    if len(population) < adaptive['min_points']:
        return z_threshold, mad_threshold

    sample = _historical_values(population, adaptive['reference_parameter'], cfg)
    if sample.size == 0:
        return z_threshold, mad_threshold

    z_p = percentile(zscores(sample), adaptive['percentile'])
    mad_p = percentile(
        mad_scores(sample, trim=acfg['mad_trim'], consistency=acfg['mad_consistency']),
        adaptive['percentile'],
    )
    z_threshold = max(z_threshold, z_p)
    mad_threshold = min(max(mad_threshold, mad_p), adaptive['mad_cap'])
    return z_threshold, mad_threshold


class AnomalyDetector(BaseBatchScorer):
    """
    Anomaly detector over batches of readings.
    """

    def __init__(self, config: Dict[str, Any] = None, repository=None):
        """Initialize anomaly detector."""
        super().__init__('anomaly', config, repository)
        self.parameters = list(self.config['anomaly']['parameters'])

    def detect(
        self,
        reading: Dict[str, Any],
        parameters: Optional[Iterable[str]] = None,
        window=None,
        z_threshold: Optional[float] = None,
        mad_threshold: Optional[float] = None,
    ) -> AnomalyAnnotation:
        """Score one reading (see detect_anomalies)."""
        return detect_anomalies(
            reading,
            parameters or self.parameters,
            window,
            z_threshold,
            mad_threshold,
            self.config,
        )

    def neutral_fields(self) -> Dict[str, Any]:
        return AnomalyAnnotation.neutral().to_record_fields()

    def passthrough(self, record: Dict[str, Any]) -> bool:
        return is_anomaly_annotated(record)

    def prepare(self, window: HistoricalWindow) -> Dict[str, Any]:
        z_threshold, mad_threshold = adaptive_thresholds(window, self.config)
        self.logger.debug(f"Thresholds: z={z_threshold:.3f}, mad={mad_threshold:.3f}")
        return {'z_threshold': z_threshold, 'mad_threshold': mad_threshold}

    def annotate(self, record, window, context):
        annotation = self.detect(
            record,
            window=window,
            z_threshold=context['z_threshold'],
            mad_threshold=context['mad_threshold'],
        )
        return annotation.to_record_fields()

    def detect_batch(
        self,
        readings: List[Dict[str, Any]],
        in_flight: Optional[List[Dict[str, Any]]] = None,
        window: Optional[HistoricalWindow] = None,
    ) -> List[Dict[str, Any]]:
        """
        Annotate a batch with anomaly fields.

        Implausible-throughput readings get the zero annotation, already-annotated
        readings pass through, and a failing record is demoted to the zero annotation.

        Args:
            readings: List of reading dicts
            in_flight: Records processed earlier in this run
            window: Pre-assembled window (skips the persisted fetch)

        Returns:
            List of annotated copies
        """
        return self.process_batch(readings, in_flight=in_flight, window=window)


ComponentFactory.register('anomaly', AnomalyDetector)
