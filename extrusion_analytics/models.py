"""
Data Model Module

Annotations produced by the analytics components and the equipment reference data
consumed by the maintenance predictor. Readings themselves stay plain dicts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .core.accessor import is_finite_number, parse_timestamp


class EquipmentType(Enum):
    """Equipment categories on the line"""
    EXTRUDER = "extruder"
    BLOWER = "blower"
    WINDER = "winder"
    HEATER = "heater"
    SENSOR = "sensor"
    OTHER = "other"


class MaintenanceType(Enum):
    """Maintenance event types"""
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    EMERGENCY = "emergency"
    INSPECTION = "inspection"


class SensorType(Enum):
    """Sensor types attached to equipment"""
    TEMPERATURE = "temperature"
    PRESSURE = "pressure"
    FLOW = "flow"
    VIBRATION = "vibration"


class RiskLevel(Enum):
    """Maintenance urgency tiers"""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


def _to_datetime(value: Any) -> Optional[datetime]:
    ts = parse_timestamp(value)
    return ts.to_pydatetime() if ts is not None else None


# =============================================================================
# ANNOTATIONS
# =============================================================================

ANOMALY_FIELDS = ('anomaly_score', 'is_anomaly', 'anomaly_parameters', 'anomaly_method')
QUALITY_FIELDS = ('quality_score', 'quality_details', 'process_capability')


@dataclass
class AnomalyAnnotation:
    """Record-level anomaly verdict."""
    score: float = 0.0
    is_anomaly: bool = False
    parameters: List[str] = field(default_factory=list)
    method: str = "none"
    details: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def neutral(cls) -> 'AnomalyAnnotation':
        return cls()

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'AnomalyAnnotation':
        """Rebuild the annotation carried by an already-annotated reading."""
        return cls(
            score=float(record.get('anomaly_score') or 0.0),
            is_anomaly=bool(record.get('is_anomaly', False)),
            parameters=list(record.get('anomaly_parameters') or []),
            method=record.get('anomaly_method') or 'none',
        )

    def to_record_fields(self) -> Dict[str, Any]:
        return {
            'anomaly_score': self.score,
            'is_anomaly': self.is_anomaly,
            'anomaly_parameters': list(self.parameters),
            'anomaly_method': self.method,
        }


def is_anomaly_annotated(record: Any) -> bool:
    """True when a reading already carries an anomaly score."""
    return isinstance(record, dict) and record.get('anomaly_score') is not None


@dataclass
class CapabilityIndex:
    """Process-capability indices for one parameter."""
    cp: float = 0.0
    cpk: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'Cp': self.cp, 'Cpk': self.cpk}


@dataclass
class QualityAnnotation:
    """Quality score with its deviation and capability breakdown."""
    score: int = 0
    deviation_detail: Dict[str, Dict[str, float]] = field(default_factory=dict)
    process_capability: Dict[str, CapabilityIndex] = field(default_factory=lambda: {
        'thickness': CapabilityIndex(),
        'throughput': CapabilityIndex(),
    })
    deviation_score: float = 0.0
    capability_score: float = 0.0

    @classmethod
    def neutral(cls) -> 'QualityAnnotation':
        return cls()

    def to_record_fields(self) -> Dict[str, Any]:
        return {
            'quality_score': self.score,
            'quality_details': {k: dict(v) for k, v in self.deviation_detail.items()},
            'process_capability': {k: v.to_dict() for k, v in self.process_capability.items()},
        }


# =============================================================================
# EQUIPMENT
# =============================================================================

@dataclass
class NormalRange:
    """Normal operating range of a sensor."""
    min: float
    max: float

    @property
    def width(self) -> float:
        return self.max - self.min


@dataclass
class Sensor:
    """Sensor attached to a piece of equipment."""
    type: str
    name: Optional[str] = None
    unit: Optional[str] = None
    normal_range: Optional[NormalRange] = None
    data_point_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sensor':
        rng = data.get('normal_range')
        normal_range = None
        if isinstance(rng, dict) and is_finite_number(rng.get('min')) and is_finite_number(rng.get('max')):
            normal_range = NormalRange(float(rng['min']), float(rng['max']))
        return cls(
            type=str(data.get('type', '')),
            name=data.get('name'),
            unit=data.get('unit'),
            normal_range=normal_range,
            data_point_id=data.get('data_point_id'),
        )


@dataclass
class MaintenanceEvent:
    """One entry of an equipment's maintenance history."""
    date: Optional[datetime]
    type: str
    parts: List[str] = field(default_factory=list)
    cost: Optional[float] = None
    description: Optional[str] = None
    technician: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MaintenanceEvent':
        return cls(
            date=_to_datetime(data.get('date')),
            type=str(data.get('type', '')),
            parts=list(data.get('parts') or []),
            cost=data.get('cost'),
            description=data.get('description'),
            technician=data.get('technician'),
        )


@dataclass
class Equipment:
    """Long-lived equipment reference record."""
    id: str
    type: str
    name: Optional[str] = None
    location: Optional[str] = None
    installation_date: Optional[datetime] = None
    last_maintenance_date: Optional[datetime] = None
    specifications: Dict[str, Any] = field(default_factory=dict)
    maintenance_history: List[MaintenanceEvent] = field(default_factory=list)
    sensors: List[Sensor] = field(default_factory=list)
    status: str = "operational"

    @property
    def power_rating(self) -> Optional[float]:
        value = self.specifications.get('power_rating')
        return float(value) if is_finite_number(value) else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Equipment':
        """Build from a plain registry document."""
        return cls(
            id=str(data.get('id', data.get('_id', ''))),
            type=str(data.get('type', EquipmentType.OTHER.value)),
            name=data.get('name'),
            location=data.get('location'),
            installation_date=_to_datetime(data.get('installation_date')),
            last_maintenance_date=_to_datetime(data.get('last_maintenance_date')),
            specifications=dict(data.get('specifications') or {}),
            maintenance_history=[
                MaintenanceEvent.from_dict(e) for e in data.get('maintenance_history') or []
            ],
            sensors=[Sensor.from_dict(s) for s in data.get('sensors') or []],
            status=data.get('status', 'operational'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'name': self.name,
            'location': self.location,
            'installation_date': self.installation_date,
            'last_maintenance_date': self.last_maintenance_date,
            'specifications': dict(self.specifications),
            'status': self.status,
        }


@dataclass
class MaintenancePrediction:
    """Health and maintenance forecast for one equipment unit."""
    health_score: float
    raw_score: float
    days_to_maintenance: int
    risk_level: str
    next_maintenance_date: datetime
    confidence: float
    penalties: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'health_score': self.health_score,
            'maintenance_prediction': {
                'days_to_maintenance': self.days_to_maintenance,
                'risk_level': self.risk_level,
                'next_maintenance_date': self.next_maintenance_date,
                'confidence': self.confidence,
            },
        }
