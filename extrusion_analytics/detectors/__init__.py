"""
Analytics components. Importing this package registers them with ComponentFactory.
"""

from .anomaly import (
    AnomalyDetector,
    adaptive_thresholds,
    cold_start_range,
    cold_start_scores,
    detect_anomalies,
    warm_scores,
)

from .quality import (
    QualityScorer,
    cpk_to_score,
    deviation_score,
    process_capability,
    score_quality,
)

from .maintenance import (
    SENSOR_FIELD_MAP,
    MaintenancePredictor,
    SensorField,
    predict_maintenance,
    prediction_confidence,
    resolve_sensor_field,
    risk_level,
)

__all__ = [
    # Anomaly
    'AnomalyDetector',
    'adaptive_thresholds',
    'cold_start_range',
    'cold_start_scores',
    'detect_anomalies',
    'warm_scores',
    # Quality
    'QualityScorer',
    'cpk_to_score',
    'deviation_score',
    'process_capability',
    'score_quality',
    # Maintenance
    'SENSOR_FIELD_MAP',
    'MaintenancePredictor',
    'SensorField',
    'predict_maintenance',
    'prediction_confidence',
    'resolve_sensor_field',
    'risk_level',
]
