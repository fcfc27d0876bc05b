"""
Extrusion Line Analytics - Configuration Module

Central configuration dictionary consolidating all thresholds, parameter lists and
policies for the anomaly, quality and maintenance analytics.

Cold-start ranges and maintenance weights are empirical values for the line.
"""

import copy

EXTRUDERS = ['extruder_A', 'extruder_B', 'extruder_C']
HEATING_ZONES = ['zone_1', 'zone_3', 'zone_5', 'zone_7']
MATERIAL_COMPONENTS = 4

RATIO_PARAMETERS = [
    f'materials.{extruder}[{idx}].actual_ratio'
    for extruder in EXTRUDERS
    for idx in range(MATERIAL_COMPONENTS)
]

CONFIG = {
    # Reading identity and plausibility
    'timestamp_field': 'timestamp',
    'plausibility': {
        'field': 'total_output',         # throughput gates every record
        'min_exclusive': 0.0,            # sentinel rows carry 0 or negatives
        'max_inclusive': 1000.0,
    },

    # Historical window
    'window': {
        'capacity': 100,                 # newest N readings kept as comparison population
        'fetch_limit': 50,               # persisted readings requested per batch
        'in_flight_capacity': 100,       # records from the current run kept between batches
    },

    # Anomaly detection (Z-Score + MAD)
    'anomaly': {
        'z_threshold': 3.0,
        'mad_threshold': 3.5,
        'min_history': 10,               # below this, cold-start ranges are used
        'min_outlier_parameters': 3,     # record-level verdict
        'score_scale': 4.0,              # max score normalised by scale * threshold
        'mad_trim': 0.05,                # drop extreme 5% of abs deviations per tail
        'mad_consistency': 1.4826,
        'adaptive': {
            'min_points': 20,
            'percentile': 95,
            'reference_parameter': 'total_output',
            'mad_cap': 10.0,
        },
        'parameters': (
            ['total_output']
            + [f'{extruder}_pressure' for extruder in EXTRUDERS]
            + [f'{extruder}_temperature' for extruder in EXTRUDERS]
            + ['blower_load_1', 'blower_load_2', 'blower_exhaust_actual', 'actual_thickness']
            + [
                f'heating_zones.{extruder}.{zone}.actual'
                for extruder in EXTRUDERS
                for zone in HEATING_ZONES
            ]
            + RATIO_PARAMETERS
        ),
    },

    # Cold-start ranges (fixed or target-relative)
    'cold_start': {
        'pressure': (300.0, 600.0),
        'temperature': (180.0, 220.0),
        'blower_load': (0.0, 150.0),
        'total_output': (310.0, 330.0),
        'thickness_margin': 2.0,
        'thickness_default_target': 25.0,
        'ratio_margin': 0.5,
        'exhaust_margin': 10.0,
        'exhaust_default_setpoint': 30.0,
        'heating_zone_margin': 30.0,
        'relative_fraction': 0.30,       # unmatched parameters: value +/- 30%
    },

    # Quality scoring
    'quality': {
        'targets': dict(
            [('actual_thickness', 'target_thickness'), ('total_output', 'target_output')]
            + [(p, p.replace('actual_ratio', 'target_ratio')) for p in RATIO_PARAMETERS]
        ),
        'tolerances': dict(
            [('actual_thickness', (-0.5, 0.5)), ('total_output', (-20.0, 20.0))]
            + [(p, (-0.2, 0.2)) for p in RATIO_PARAMETERS]
        ),
        'deviation_weight': 50.0,
        'capability_weight': 50.0,
        'capability_min_points': 10,
        'cpk_floor': 0.67,               # incapable process -> 0 points
        'cpk_target': 1.33,              # capable process -> full points
        'capability_parameters': {
            'thickness': 'actual_thickness',
            'throughput': 'total_output',
        },
    },

    # Maintenance prediction
    'maintenance': {
        'base_score': 100.0,
        'recency_weight': 25.0,
        'recency_softening': 0.5,
        'interval_days': 180,
        'low_power_interval_days': 365,
        'low_power_rating': 100.0,       # kW
        'age_weight': 15.0,
        'lifespan_years': 10.0,
        'history_weight': 20.0,
        'history_window_days': 365,
        'emergency_factor': 3.0,
        'severity_scale': 10.0,
        'sensor_weight': 40.0,
        'sensor_softening': 0.5,
        'health_scale': 1.5,             # 0-10 health score quantisation
        'max_days_to_maintenance': 180,
        'risk_tiers': [(80.0, 'low'), (60.0, 'moderate'), (40.0, 'high')],
        'confidence': {
            'base': 0.7,
            'per_event': 0.02,
            'per_field': 0.005,
            'per_year': 0.01,
            'max_bonus': 0.1,
        },
    },

    # Reporting
    'reporting': {
        'anomaly_threshold': 0.7,
        'top_n': 5,
        'summary_fields': (
            [f'{extruder}_pressure' for extruder in EXTRUDERS]
            + [f'{extruder}_temperature' for extruder in EXTRUDERS]
            + ['total_output', 'target_output', 'efficiency']
        ),
    },

    # Batching and logging
    'batch_size': 100,
    'logging': {
        'level': 'INFO',
        'log_to_file': False,
        'log_dir': 'logs',
        'console_format': '%(levelname)s - %(message)s',
        'file_format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'date_format': '%Y-%m-%d %H:%M:%S',
    },
}


def merge_config(overrides=None, base=None):
    """
    Deep-merge overrides into a copy of the configuration.

    Args:
        overrides: Partial configuration dictionary
        base: Configuration to start from (defaults to CONFIG)

    Returns:
        dict: New configuration; neither input is modified
    """
    merged = copy.deepcopy(CONFIG if base is None else base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(value, merged[key])
        else:
            merged[key] = copy.deepcopy(value)
    return merged

