"""
Analytics Reporting Module

Dashboard summaries over annotated readings and maintenance predictions.
"""

import os
from datetime import datetime, timedelta, timezone

import numpy as np
import pandas as pd

from .config import CONFIG
from .core.accessor import parse_timestamp
from .models import RiskLevel

TIMEFRAMES = {
    '24h': timedelta(hours=24),
    '7d': timedelta(days=7),
    '30d': timedelta(days=30),
}


def compute_efficiency(total_output, target_output):
    """
    Throughput efficiency in percent, capped at 100.

    A missing or zero target counts as 1.
    """
    total = float(total_output) if pd.notna(total_output) else 0.0
    target = float(target_output) if pd.notna(target_output) and target_output else 1.0
    return round(min(total / target * 100, 100.0), 2)


def timeframe_start(timeframe='24h', now=None):
    """
    Start of a reporting timeframe ('24h', '7d', '30d'; unknown values mean '24h').

    Returns:
        pd.Timestamp (naive UTC)
    """
    now = parse_timestamp(now) if now is not None else parse_timestamp(datetime.now(timezone.utc))
    return now - TIMEFRAMES.get(timeframe, TIMEFRAMES['24h'])


def readings_to_frame(readings, cfg=CONFIG):
    """
    Flatten annotated readings into a DataFrame.

    Nested dicts become dotted columns (e.g. 'heating_zones.extruder_A.zone_1.actual').
    The timestamp column is parsed; efficiency is derived when absent.

    Args:
        readings: List of reading dicts
        cfg: Configuration dictionary

    Returns:
        DataFrame sorted newest first
    """
    if not readings:
        return pd.DataFrame()

    df = pd.json_normalize([r for r in readings if isinstance(r, dict)])
    ts_col = cfg['timestamp_field']
    if ts_col in df:
        df[ts_col] = pd.to_datetime(df[ts_col].map(parse_timestamp))
        df = df.sort_values(ts_col, ascending=False, na_position='last').reset_index(drop=True)

    if 'efficiency' not in df and 'total_output' in df and 'target_output' in df:
        df['efficiency'] = [
            compute_efficiency(t, g) for t, g in zip(df['total_output'], df['target_output'])
        ]
    return df


def _since(df, since, cfg):
    ts_col = cfg['timestamp_field']
    if since is None or df.empty or ts_col not in df:
        return df
    return df[df[ts_col] >= parse_timestamp(since)]


def analytics_summary(readings, since=None, threshold=None, cfg=CONFIG):
    """
    Aggregate metrics for the dashboard.

    Args:
        readings: Annotated readings (or a frame from readings_to_frame)
        since: Only readings at or after this time
        threshold: Anomaly score above which a reading counts as an anomaly
        cfg: Configuration dictionary

    Returns:
        dict: Averages of key parameters plus record, anomaly and risk counts
    """
    threshold = cfg['reporting']['anomaly_threshold'] if threshold is None else threshold
    df = readings if isinstance(readings, pd.DataFrame) else readings_to_frame(readings, cfg)
    df = _since(df, since, cfg)

    summary = {}
    for field in cfg['reporting']['summary_fields']:
        mean = df[field].mean() if field in df else np.nan
        summary[f'avg_{field}'] = None if pd.isna(mean) else float(mean)

    summary['record_count'] = int(len(df))
    summary['anomaly_count'] = int((df['anomaly_score'] > threshold).sum()) if 'anomaly_score' in df else 0

    risk_col = 'maintenance_prediction.risk_level'
    for tier in (RiskLevel.HIGH.value, RiskLevel.CRITICAL.value):
        summary[f'{tier}_risk_count'] = int((df[risk_col] == tier).sum()) if risk_col in df else 0

    return summary


def recent_anomalies(readings, threshold=None, top_n=None, since=None, cfg=CONFIG):
    """
    Highest-scoring anomalies.

    Args:
        readings: Annotated readings (or frame)
        threshold: Minimum anomaly score (exclusive)
        top_n: Number of rows
        since: Only readings at or after this time

    Returns:
        DataFrame ranked by anomaly_score descending
    """
    threshold = cfg['reporting']['anomaly_threshold'] if threshold is None else threshold
    top_n = cfg['reporting']['top_n'] if top_n is None else top_n
    df = readings if isinstance(readings, pd.DataFrame) else readings_to_frame(readings, cfg)
    df = _since(df, since, cfg)
    if 'anomaly_score' not in df:
        return pd.DataFrame()

    flagged = df[df['anomaly_score'] > threshold]
    return flagged.sort_values('anomaly_score', ascending=False).head(top_n).reset_index(drop=True)


def anomaly_event_log(readings, threshold=None, cfg=CONFIG):
    """
    One event row per anomalous reading.

    Severity is 'critical' above the reporting threshold, otherwise 'warn'.

    Returns:
        DataFrame: timestamp, anomaly_score, method, parameters, severity
    """
    threshold = cfg['reporting']['anomaly_threshold'] if threshold is None else threshold
    ts_col = cfg['timestamp_field']
    events = []
    for r in readings:
        if not isinstance(r, dict) or not r.get('is_anomaly'):
            continue
        events.append({
            'timestamp': parse_timestamp(r.get(ts_col)),
            'anomaly_score': r.get('anomaly_score'),
            'method': r.get('anomaly_method'),
            'parameters': ', '.join(r.get('anomaly_parameters') or []),
            'n_parameters': len(r.get('anomaly_parameters') or []),
            'severity': 'critical' if r.get('anomaly_score', 0) > threshold else 'warn',
        })
    return pd.DataFrame(events, columns=['timestamp', 'anomaly_score', 'method', 'parameters', 'n_parameters', 'severity'])


def current_status(readings, cfg=CONFIG):
    """Most recent reading by timestamp, or None."""
    ts_col = cfg['timestamp_field']
    dated = [(parse_timestamp(r.get(ts_col)), r) for r in readings if isinstance(r, dict)]
    dated = [(ts, r) for ts, r in dated if ts is not None]
    if not dated:
        return None
    return max(dated, key=lambda item: item[0])[1]


def maintenance_table(predictions, risk='all', limit=20):
    """
    Predictions sorted by urgency.

    Args:
        predictions: Output of MaintenancePredictor.predict_batch
        risk: Risk tier filter, or 'all'
        limit: Maximum rows

    Returns:
        DataFrame: id, name, type, health_score, risk_level, days_to_maintenance, ...
    """
    rows = []
    for p in predictions:
        mp = p.get('maintenance_prediction')
        if mp is None:
            continue
        rows.append({
            'id': p.get('id', p.get('_id')),
            'name': p.get('name'),
            'type': p.get('type'),
            'health_score': p.get('health_score'),
            'risk_level': mp['risk_level'],
            'days_to_maintenance': mp['days_to_maintenance'],
            'next_maintenance_date': mp['next_maintenance_date'],
            'confidence': mp['confidence'],
        })
    df = pd.DataFrame(rows, columns=[
        'id', 'name', 'type', 'health_score', 'risk_level',
        'days_to_maintenance', 'next_maintenance_date', 'confidence'
    ])
    if risk != 'all':
        df = df[df['risk_level'] == risk]
    return df.sort_values('days_to_maintenance', kind='stable').head(limit).reset_index(drop=True)


def maintenance_summary(predictions):
    """
    Counts per risk tier and the soonest-due unit.

    Returns:
        dict: by_risk, failed, soonest_id, soonest_days
    """
    table = maintenance_table(predictions, limit=len(predictions))
    by_risk = {tier.value: 0 for tier in RiskLevel}
    by_risk.update({k: int(v) for k, v in table['risk_level'].value_counts().items()})

    summary = {
        'by_risk': by_risk,
        'failed': sum(1 for p in predictions if p.get('maintenance_prediction') is None),
        'soonest_id': None,
        'soonest_days': None,
    }
    if not table.empty:
        summary['soonest_id'] = table.iloc[0]['id']
        summary['soonest_days'] = int(table.iloc[0]['days_to_maintenance'])
    return summary


def equipment_status_summary(equipment):
    """Number of equipment units per operational status."""
    statuses = pd.Series([e.get('status', 'operational') for e in equipment], dtype=object)
    return {k: int(v) for k, v in statuses.value_counts().items()}


def save_outputs(readings, predictions=None, output_dir='outputs', cfg=CONFIG):
    """
    Save scored readings, anomaly events and maintenance predictions to CSV files.

    Args:
        readings: Annotated readings
        predictions: Maintenance predictions (optional)
        output_dir: Output directory
        cfg: Configuration dictionary

    Returns:
        dict: Paths of the written files
    """
    os.makedirs(output_dir, exist_ok=True)
    paths = {}

    frame = readings_to_frame(readings, cfg)
    scored_path = os.path.join(output_dir, 'scored_readings.csv')
    frame.to_csv(scored_path, index=False)
    paths['scored_readings'] = scored_path
    print(f"Saved scored readings: {scored_path} ({len(frame)} records)")

    events = anomaly_event_log(readings, cfg=cfg)
    event_path = os.path.join(output_dir, 'anomaly_events.csv')
    events.to_csv(event_path, index=False)
    paths['anomaly_events'] = event_path
    print(f"Saved anomaly events: {event_path} ({len(events)} events)")

    if predictions is not None:
        table = maintenance_table(predictions, limit=len(predictions))
        maintenance_path = os.path.join(output_dir, 'maintenance_predictions.csv')
        table.to_csv(maintenance_path, index=False)
        paths['maintenance_predictions'] = maintenance_path
        print(f"Saved maintenance predictions: {maintenance_path} ({len(table)} units)")

    return paths
