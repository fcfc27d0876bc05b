"""
Maintenance Predictor - Composite Health Model

Starts every unit at a health score of 100 and subtracts four independent penalties:

1. Maintenance recency (<= 25 pts)
2. Equipment age (<= 15 pts)
3. Recent maintenance-history severity (<= 20 pts)
4. Live sensor deviation from normal ranges (<= 40 pts)

The clamped score is translated into a 0-10 health score, a risk tier, a
days-to-maintenance estimate and a confidence figure.
"""

import math
from collections import namedtuple
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..config import CONFIG
from ..core import BaseComponent, ComponentFactory
from ..core.accessor import get_numeric, parse_timestamp
from ..models import (
    Equipment,
    MaintenancePrediction,
    MaintenanceType,
    RiskLevel,
    SensorType,
)
from ..stats import round_half_up

SECONDS_PER_DAY = 24 * 3600

# Reading field consulted for a sensor, scaled by `scale`; a zero source is unresolved when `zero_unset`
SensorField = namedtuple('SensorField', ['path', 'scale', 'zero_unset'], defaults=(False,))

ANY_EQUIPMENT = '*'

# (equipment type, sensor type) -> reading field; None means unmapped (skipped)
SENSOR_FIELD_MAP = {
    ('blower', SensorType.PRESSURE.value): SensorField('blower_load_1', 1.0),
    ('extruder', SensorType.PRESSURE.value): SensorField('extruder_A_pressure', 1.0),
    (ANY_EQUIPMENT, SensorType.TEMPERATURE.value): SensorField('extruder_A_temperature', 1.0),
    (ANY_EQUIPMENT, SensorType.FLOW.value): SensorField('total_output', 5.0, zero_unset=True),
    (ANY_EQUIPMENT, SensorType.VIBRATION.value): None,
}


def resolve_sensor_field(equipment_type: str, sensor_type: str, sensor_map=None) -> Optional[SensorField]:
    """Look up the reading field for a sensor, falling back to the any-equipment entry."""
    sensor_map = SENSOR_FIELD_MAP if sensor_map is None else sensor_map
    key = (equipment_type, sensor_type)
    if key in sensor_map:
        return sensor_map[key]
    return sensor_map.get((ANY_EQUIPMENT, sensor_type))


def sensor_value(equipment_type: str, sensor_type: str, reading: Dict[str, Any], sensor_map=None) -> Optional[float]:
    """Current value of a sensor from the reading, or None when unmapped or unresolvable."""
    mapping = resolve_sensor_field(equipment_type, sensor_type, sensor_map)
    if mapping is None or not reading:
        return None
    value = get_numeric(reading, mapping.path)
    if value is None or (mapping.zero_unset and value == 0):
        return None
    return value * mapping.scale


def _as_datetime(value: Any) -> Optional[datetime]:
    ts = parse_timestamp(value)
    return ts.to_pydatetime() if ts is not None else None


def _elapsed_days(since: datetime, now: datetime) -> int:
    """Whole days elapsed, floored."""
    return int(math.floor((now - since).total_seconds() / SECONDS_PER_DAY))


def maintenance_interval(equipment: Equipment, cfg=CONFIG) -> int:
    """Nominal interval: long for low-power units, standard otherwise (or when unrated)."""
    m = cfg['maintenance']
    rating = equipment.power_rating
    if rating is not None and rating < m['low_power_rating']:
        return m['low_power_interval_days']
    return m['interval_days']


def recency_penalty(equipment: Equipment, now: datetime, cfg=CONFIG) -> float:
    m = cfg['maintenance']
    if equipment.last_maintenance_date is None:
        return 0.0
    days = max(_elapsed_days(equipment.last_maintenance_date, now), 0)
    factor = min(days / maintenance_interval(equipment, cfg), 1.0) * m['recency_softening']
    return factor * m['recency_weight']


def age_penalty(equipment: Equipment, now: datetime, cfg=CONFIG) -> float:
    m = cfg['maintenance']
    if equipment.installation_date is None:
        return 0.0
    years = max(_elapsed_days(equipment.installation_date, now), 0) / 365
    return min(years / m['lifespan_years'], 1.0) * m['age_weight']


def history_penalty(equipment: Equipment, now: datetime, cfg=CONFIG) -> float:
    """
    Severity of maintenance over the trailing window.

    Emergency events weigh three times corrective ones; preventive and inspection
    events only dilute the ratio.
    """
    m = cfg['maintenance']
    cutoff = now - timedelta(days=m['history_window_days'])
    recent = [e for e in equipment.maintenance_history if e.date is not None and e.date >= cutoff]
    if not recent:
        return 0.0

    emergency = sum(1 for e in recent if e.type == MaintenanceType.EMERGENCY.value)
    corrective = sum(1 for e in recent if e.type == MaintenanceType.CORRECTIVE.value)
    severity = (m['emergency_factor'] * emergency + corrective) / len(recent)
    return min(severity * m['severity_scale'], m['history_weight'])


def sensor_penalty(equipment: Equipment, reading: Dict[str, Any], sensor_map=None, cfg=CONFIG) -> Tuple[float, int]:
    """
    Average out-of-range deviation across sensors with a resolvable value.

    Returns:
        tuple: (penalty, sensors_checked)
    """
    m = cfg['maintenance']
    total = 0.0
    checked = 0
    for sensor in equipment.sensors:
        if sensor.normal_range is None:
            continue
        value = sensor_value(equipment.type, sensor.type, reading, sensor_map)
        if value is None:
            continue

        checked += 1
        rng = sensor.normal_range
        if rng.min <= value <= rng.max:
            continue
        distance = rng.min - value if value < rng.min else value - rng.max
        if rng.width == 0:
            deviation = 1.0
        else:
            deviation = min(distance / rng.width * m['sensor_softening'], 1.0)
        total += deviation

    if checked == 0:
        return 0.0, 0
    return total / checked * m['sensor_weight'], checked


def risk_level(score: float, cfg=CONFIG) -> str:
    """Risk tier of a 0-100 health score."""
    for threshold, tier in cfg['maintenance']['risk_tiers']:
        if score >= threshold:
            return tier
    return RiskLevel.CRITICAL.value


def prediction_confidence(equipment: Equipment, reading: Optional[Dict[str, Any]], now: datetime, cfg=CONFIG) -> float:
    """
    Confidence of a prediction from data volume.

    Gains from maintenance-history size, number of fields in the current reading,
    and equipment age, each capped.
    """
    c = cfg['maintenance']['confidence']
    confidence = c['base']
    confidence += min(c['per_event'] * len(equipment.maintenance_history), c['max_bonus'])
    if isinstance(reading, dict):
        confidence += min(c['per_field'] * len(reading), c['max_bonus'])
    if equipment.installation_date is not None:
        years = max((now - equipment.installation_date).total_seconds() / (SECONDS_PER_DAY * 365), 0.0)
        confidence += min(c['per_year'] * years, c['max_bonus'])
    return min(confidence, 1.0)


def predict_maintenance(
    equipment,
    current_reading: Optional[Dict[str, Any]] = None,
    now=None,
    sensor_map=None,
    cfg=CONFIG,
) -> MaintenancePrediction:
    """
    Health score and maintenance forecast for one unit.

    Args:
        equipment: Equipment or registry dict
        current_reading: Latest reading for the unit
        now: Evaluation time (defaults to the current time)
        sensor_map: Override of the sensor-to-field table
        cfg: Configuration dictionary

    Returns:
        MaintenancePrediction
    """
    m = cfg['maintenance']
    if not isinstance(equipment, Equipment):
        equipment = Equipment.from_dict(equipment)
    now = _as_datetime(now) if now is not None else datetime.now(timezone.utc).replace(tzinfo=None)
    reading = current_reading or {}

    penalties = {
        'recency': recency_penalty(equipment, now, cfg),
        'age': age_penalty(equipment, now, cfg),
        'history': history_penalty(equipment, now, cfg),
        'sensor': sensor_penalty(equipment, reading, sensor_map, cfg)[0],
    }

    score = min(max(m['base_score'] - sum(penalties.values()), 0.0), m['base_score'])
    scale = m['health_scale']
    health = round_half_up(score / m['base_score'] * 10 * scale) / scale
    days = round_half_up(score / m['base_score'] * m['max_days_to_maintenance'])

    return MaintenancePrediction(
        health_score=health,
        raw_score=score,
        days_to_maintenance=days,
        risk_level=risk_level(score, cfg),
        next_maintenance_date=now + timedelta(days=days),
        confidence=prediction_confidence(equipment, current_reading, now, cfg),
        penalties=penalties,
    )


class MaintenancePredictor(BaseComponent):
    """
    Maintenance predictor over equipment units.
    """

    def __init__(self, config: Dict[str, Any] = None, registry=None, sensor_map=None):
        """Initialize maintenance predictor."""
        super().__init__('maintenance', config)
        self.registry = registry
        self.sensor_map = dict(SENSOR_FIELD_MAP if sensor_map is None else sensor_map)
        self.last_batch_stats = {'total': 0, 'failed': 0}

    def predict(self, equipment, current_reading: Optional[Dict[str, Any]] = None, now=None) -> MaintenancePrediction:
        """Predict for one unit (see predict_maintenance)."""
        return predict_maintenance(equipment, current_reading, now, self.sensor_map, self.config)

    def predict_batch(
        self,
        equipment_list: List[Any],
        readings_by_id: Optional[Dict[str, Dict[str, Any]]] = None,
        now=None,
        default_reading: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Predict independently for every unit.

        A unit that fails is returned with health_score and maintenance_prediction
        set to None and does not affect the others.

        Args:
            equipment_list: Equipment objects or registry dicts
            readings_by_id: Current reading per equipment id
            now: Evaluation time
            default_reading: Reading for units absent from readings_by_id

        Returns:
            List of equipment dicts with prediction fields, in input order
        """
        readings_by_id = readings_by_id or {}
        results = []
        failed = 0
        for item in equipment_list:
            if isinstance(item, Equipment):
                document = item.to_dict()
            else:
                document = dict(item) if isinstance(item, dict) else {}
            try:
                equipment = item if isinstance(item, Equipment) else Equipment.from_dict(item)
                reading = readings_by_id.get(equipment.id) or default_reading or {}
                prediction = self.predict(equipment, reading, now)
                results.append({**document, **prediction.to_dict()})
            except Exception as e:
                failed += 1
                self.logger.error(f"Maintenance prediction failed for {document.get('id', document.get('_id'))}: {e}")
                results.append({**document, 'health_score': None, 'maintenance_prediction': None})

        self.last_batch_stats = {'total': len(equipment_list), 'failed': failed}
        return results


ComponentFactory.register('maintenance', MaintenancePredictor)
