"""
Extrusion Line Analytics

Statistical analytics core for extrusion-line telemetry.

Components:
- Anomaly detection: Z-score + trimmed MAD with adaptive thresholds and cold start
- Quality scoring: deviation from target + Cp/Cpk process capability
- Maintenance prediction: composite equipment health, risk tier, days to maintenance
- Reporting: dashboard summaries and CSV outputs
"""

__version__ = "0.1.0"

from .config import CONFIG, merge_config
from .core.accessor import ABSENT, get_nested_value, get_numeric
from .stats import zscores, mad_scores, percentile, round_half_up
from .models import (
    AnomalyAnnotation,
    QualityAnnotation,
    CapabilityIndex,
    Equipment,
    MaintenancePrediction,
    RiskLevel,
)
from .detectors import (
    AnomalyDetector,
    QualityScorer,
    MaintenancePredictor,
    detect_anomalies,
    score_quality,
    predict_maintenance,
    deviation_score,
    process_capability,
    cpk_to_score,
    risk_level,
)
from .core import (
    HistoricalWindow,
    InFlightBuffer,
    EngineBuilder,
    AnalyticsEngine,
    InvalidBatchError,
    ValidationError,
)
from .repository import (
    ReadingRepository,
    EquipmentRegistry,
    InMemoryReadingRepository,
    InMemoryEquipmentRegistry,
)
from .reporting import analytics_summary, recent_anomalies, maintenance_summary, save_outputs
from .pipeline import run_pipeline

__all__ = [
    'CONFIG',
    'merge_config',
    'ABSENT',
    'get_nested_value',
    'get_numeric',
    'zscores',
    'mad_scores',
    'percentile',
    'round_half_up',
    'AnomalyAnnotation',
    'QualityAnnotation',
    'CapabilityIndex',
    'Equipment',
    'MaintenancePrediction',
    'RiskLevel',
    'AnomalyDetector',
    'QualityScorer',
    'MaintenancePredictor',
    'detect_anomalies',
    'score_quality',
    'predict_maintenance',
    'deviation_score',
    'process_capability',
    'cpk_to_score',
    'risk_level',
    'HistoricalWindow',
    'InFlightBuffer',
    'EngineBuilder',
    'AnalyticsEngine',
    'InvalidBatchError',
    'ValidationError',
    'ReadingRepository',
    'EquipmentRegistry',
    'InMemoryReadingRepository',
    'InMemoryEquipmentRegistry',
    'analytics_summary',
    'recent_anomalies',
    'maintenance_summary',
    'save_outputs',
    'run_pipeline',
]
