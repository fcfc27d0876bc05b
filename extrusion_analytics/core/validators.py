"""
Validation for Readings, Equipment and Configuration

Validators return (is_valid, errors) tuples; the convenience function at the bottom
raises on failure.
"""

from typing import Any, Dict, List, Optional, Tuple

from ..config import CONFIG
from .accessor import get_numeric, is_finite_number, parse_timestamp
from .base import BaseValidator
from .exceptions import ValidationError


class DataValidator(BaseValidator):
    """
    Reading validation utilities.
    """

    @staticmethod
    def validate_reading(reading: Any, cfg: Dict[str, Any] = CONFIG) -> Tuple[bool, List[str]]:
        """
        Validate a single reading.

        Args:
            reading: Reading dict
            cfg: Configuration dictionary

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        if not isinstance(reading, dict):
            errors.append(f"Reading must be a dict, got {type(reading).__name__}")
            return False, errors

        if not reading:
            errors.append("Reading is empty")

        timestamp_field = cfg['timestamp_field']
        if parse_timestamp(reading.get(timestamp_field)) is None:
            errors.append(f"Missing or unparseable {timestamp_field}: {reading.get(timestamp_field)!r}")

        rule = cfg['plausibility']
        value = get_numeric(reading, rule['field'])
        if value is None:
            errors.append(f"{rule['field']} is missing or not a finite number")
        elif not (rule['min_exclusive'] < value <= rule['max_inclusive']):
            errors.append(
                f"{rule['field']} outside plausible range "
                f"({rule['min_exclusive']}, {rule['max_inclusive']}]: {value}"
            )

        return len(errors) == 0, errors

    @staticmethod
    def validate_batch_contents(readings: List[Any], cfg: Dict[str, Any] = CONFIG) -> Tuple[int, Dict[int, List[str]]]:
        """
        Validate every reading of a batch.

        Returns:
            Tuple of (valid_count, {index: errors} for invalid readings)
        """
        invalid = {}
        for idx, reading in enumerate(readings):
            ok, errors = DataValidator.validate_reading(reading, cfg)
            if not ok:
                invalid[idx] = errors
        return len(readings) - len(invalid), invalid


class ConfigValidator(BaseValidator):
    """
    Configuration validation.
    """

    REQUIRED_SECTIONS = ['plausibility', 'window', 'anomaly', 'cold_start', 'quality', 'maintenance']

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate configuration dictionary.

        Args:
            config: Configuration to validate

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        if not isinstance(config, dict):
            return False, [f"Expected dict, got {type(config).__name__}"]

        missing = [key for key in ConfigValidator.REQUIRED_SECTIONS if key not in config]
        if missing:
            errors.append(f"Missing required config keys: {missing}")

        window = config.get('window', {})
        for key in ('capacity', 'fetch_limit', 'in_flight_capacity'):
            if key in window and not (isinstance(window[key], int) and window[key] > 0):
                errors.append(f"window.{key} must be a positive integer: {window[key]}")

        anomaly = config.get('anomaly', {})
        for key in ('z_threshold', 'mad_threshold'):
            if key in anomaly and not (is_finite_number(anomaly[key]) and anomaly[key] > 0):
                errors.append(f"anomaly.{key} must be positive: {anomaly[key]}")
        if 'mad_trim' in anomaly and not (0 <= anomaly['mad_trim'] < 0.5):
            errors.append(f"anomaly.mad_trim out of range: {anomaly['mad_trim']}")
        adaptive = anomaly.get('adaptive', {})
        if 'percentile' in adaptive and not (0 <= adaptive['percentile'] <= 100):
            errors.append(f"anomaly.adaptive.percentile out of range: {adaptive['percentile']}")

        quality = config.get('quality', {})
        for name, tolerance in quality.get('tolerances', {}).items():
            if isinstance(tolerance, dict):
                low, high = tolerance.get('min'), tolerance.get('max')
            else:
                low, high = tolerance
            if not (is_finite_number(low) and is_finite_number(high)):
                errors.append(f"Tolerance for {name} must be numeric: ({low}, {high})")
            elif low > high:
                errors.append(f"Tolerance for {name} has min > max: ({low}, {high})")
        if quality and quality.get('cpk_target', 1) <= quality.get('cpk_floor', 0):
            errors.append("quality.cpk_target must exceed quality.cpk_floor")

        maintenance = config.get('maintenance', {})
        weights = [
            maintenance.get(key, 0)
            for key in ('recency_weight', 'age_weight', 'history_weight', 'sensor_weight')
        ]
        if maintenance and sum(weights) > maintenance.get('base_score', 100):
            errors.append(f"Maintenance penalty weights exceed base score: {sum(weights)}")
        tiers = [threshold for threshold, _ in maintenance.get('risk_tiers', [])]
        if tiers != sorted(tiers, reverse=True):
            errors.append(f"maintenance.risk_tiers must be in descending order: {tiers}")

        return len(errors) == 0, errors


class EquipmentValidator(BaseValidator):
    """
    Equipment reference-data validation.
    """

    @staticmethod
    def validate_equipment(equipment: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate an equipment registry document.

        Args:
            equipment: Equipment dict

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        if not isinstance(equipment, dict):
            return False, [f"Equipment must be a dict, got {type(equipment).__name__}"]

        if not equipment.get('id', equipment.get('_id')):
            errors.append("Equipment has no id")
        if not equipment.get('type'):
            errors.append("Equipment has no type")

        for key in ('installation_date', 'last_maintenance_date'):
            if equipment.get(key) is not None and parse_timestamp(equipment[key]) is None:
                errors.append(f"Unparseable {key}: {equipment[key]!r}")

        for idx, sensor in enumerate(equipment.get('sensors') or []):
            rng = (sensor or {}).get('normal_range')
            if rng is None:
                continue
            low, high = rng.get('min'), rng.get('max')
            if not (is_finite_number(low) and is_finite_number(high)):
                errors.append(f"Sensor {idx} normal_range must have numeric min and max")
            elif low > high:
                errors.append(f"Sensor {idx} normal_range has min > max: ({low}, {high})")

        return len(errors) == 0, errors


# Convenience function
def validate_engine_inputs(
    readings: Any = None,
    config: Optional[Dict[str, Any]] = None,
    equipment: Optional[List[Dict[str, Any]]] = None,
) -> None:
    """
    Validate engine inputs and raise on structural errors.

    Per-reading problems are not raised; they are absorbed into neutral annotations.

    Args:
        readings: Batch of readings
        config: Configuration
        equipment: Equipment documents

    Raises:
        InvalidBatchError: If readings is given and is not a list
        ValidationError: If configuration or equipment validation fails
    """
    if readings is not None:
        BaseValidator.validate_batch(readings)

    all_errors = []
    if config is not None:
        _, config_errors = ConfigValidator.validate_config(config)
        all_errors.extend(config_errors)

    for doc in equipment or []:
        _, equipment_errors = EquipmentValidator.validate_equipment(doc)
        all_errors.extend(equipment_errors)

    if all_errors:
        error_msg = "Validation errors:\n" + "\n".join(f"  - {e}" for e in all_errors)
        raise ValidationError(error_msg, all_errors)
