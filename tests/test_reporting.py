"""Tests for reporting helpers and the end-to-end pipeline."""

from datetime import timedelta

import pandas as pd
import pytest

from extrusion_analytics.pipeline import frame_to_readings, run_pipeline
from extrusion_analytics.reporting import (
    analytics_summary,
    anomaly_event_log,
    compute_efficiency,
    current_status,
    equipment_status_summary,
    maintenance_summary,
    maintenance_table,
    readings_to_frame,
    recent_anomalies,
    save_outputs,
    timeframe_start,
)


@pytest.fixture
def annotated(make_reading):
    scores = [0.1, 0.95, 0.4, 0.8, 0.75, 0.2]
    return [
        make_reading(i, anomaly_score=s, is_anomaly=s > 0.7, anomaly_parameters=['blower_load_1'] if s > 0.7 else [],
                     anomaly_method='Z-Score', total_output=300.0 + i)
        for i, s in enumerate(scores)
    ]


def prediction(equipment_id, risk, days, health=5.0):
    return {
        'id': equipment_id,
        'name': equipment_id,
        'type': 'extruder',
        'health_score': health,
        'maintenance_prediction': {
            'days_to_maintenance': days,
            'risk_level': risk,
            'next_maintenance_date': None,
            'confidence': 0.8,
        },
    }


# =============================================================================
# READINGS
# =============================================================================

class TestEfficiency:

    @pytest.mark.parametrize('total,target,expected', [
        (160.0, 320.0, 50.0),
        (400.0, 320.0, 100.0),
        (0.5, 0.0, 50.0),
        (0.5, None, 50.0),
        (100.0, 300.0, 33.33),
    ])
    def test_compute_efficiency(self, total, target, expected):
        assert compute_efficiency(total, target) == expected


class TestFrames:

    def test_flattened_and_sorted(self, annotated):
        df = readings_to_frame(annotated)
        assert 'heating_zones.extruder_A.zone_1.actual' in df
        assert df['timestamp'].iloc[0] > df['timestamp'].iloc[-1]
        assert df['efficiency'].iloc[0] == pytest.approx(compute_efficiency(305.0, 320.0))

    def test_empty(self):
        assert readings_to_frame([]).empty

    def test_frame_to_readings_drops_nan(self):
        df = pd.DataFrame({'timestamp': ['2024-01-01', '2024-01-02'], 'total_output': [320.0, float('nan')]})
        readings = frame_to_readings(df)
        assert readings[0]['total_output'] == 320.0
        assert 'total_output' not in readings[1]

    def test_timeframe_start(self, now):
        assert timeframe_start('7d', now) == pd.Timestamp(now - timedelta(days=7))
        assert timeframe_start('bogus', now) == pd.Timestamp(now - timedelta(hours=24))


class TestSummaries:

    def test_analytics_summary(self, annotated):
        summary = analytics_summary(annotated)
        assert summary['record_count'] == 6
        assert summary['anomaly_count'] == 3
        assert summary['avg_total_output'] == pytest.approx(302.5)
        assert summary['avg_extruder_B_pressure'] == pytest.approx(450.0)
        assert summary['high_risk_count'] == 0

    def test_summary_since(self, annotated, make_reading):
        since = make_reading(3)['timestamp']
        summary = analytics_summary(annotated, since=since, threshold=0.5)
        assert summary['record_count'] == 3
        assert summary['anomaly_count'] == 2

    def test_missing_fields_average_to_none(self):
        summary = analytics_summary([{'timestamp': '2024-01-01T00:00:00', 'total_output': 100.0}])
        assert summary['avg_extruder_A_pressure'] is None
        assert summary['avg_total_output'] == 100.0
        assert summary['anomaly_count'] == 0

    def test_recent_anomalies_ranked(self, annotated):
        top = recent_anomalies(annotated, top_n=2)
        assert list(top['anomaly_score']) == [0.95, 0.8]

    def test_recent_anomalies_without_scores(self, make_reading):
        assert recent_anomalies([make_reading()]).empty

    def test_event_log(self, annotated):
        events = anomaly_event_log(annotated, threshold=0.9)
        assert len(events) == 3
        assert list(events['severity']) == ['critical', 'warn', 'warn']
        assert events['parameters'].iloc[0] == 'blower_load_1'

    def test_current_status(self, annotated):
        assert current_status(annotated)['anomaly_score'] == 0.2
        assert current_status([{'timestamp': 'garbage'}]) is None


class TestMaintenanceReports:

    def test_table_sorted_and_filtered(self):
        predictions = [prediction('A', 'low', 150), prediction('B', 'high', 20), prediction('C', 'critical', 5),
                       {'id': 'D', 'health_score': None, 'maintenance_prediction': None}]
        table = maintenance_table(predictions)
        assert list(table['id']) == ['C', 'B', 'A']
        assert list(maintenance_table(predictions, risk='high')['id']) == ['B']
        assert len(maintenance_table(predictions, limit=1)) == 1

    def test_summary(self):
        predictions = [prediction('A', 'low', 150), prediction('B', 'high', 20),
                       {'id': 'D', 'health_score': None, 'maintenance_prediction': None}]
        summary = maintenance_summary(predictions)
        assert summary['by_risk'] == {'low': 1, 'moderate': 0, 'high': 1, 'critical': 0}
        assert summary['failed'] == 1
        assert summary['soonest_id'] == 'B'
        assert summary['soonest_days'] == 20

    def test_empty_summary(self):
        summary = maintenance_summary([])
        assert summary['soonest_id'] is None
        assert sum(summary['by_risk'].values()) == 0

    def test_equipment_status(self, registry):
        assert equipment_status_summary(registry.fetch_all()) == {'operational': 1, 'maintenance': 1}


# =============================================================================
# OUTPUTS AND PIPELINE
# =============================================================================

class TestOutputs:

    def test_save_outputs(self, annotated, tmp_path):
        paths = save_outputs(annotated, [prediction('A', 'low', 150)], output_dir=str(tmp_path))
        assert set(paths) == {'scored_readings', 'anomaly_events', 'maintenance_predictions'}
        assert len(pd.read_csv(paths['scored_readings'])) == 6
        assert len(pd.read_csv(paths['anomaly_events'])) == 3
        assert pd.read_csv(paths['maintenance_predictions'])['id'].tolist() == ['A']

    def test_predictions_optional(self, annotated, tmp_path):
        paths = save_outputs(annotated, output_dir=str(tmp_path / 'nested'))
        assert 'maintenance_predictions' not in paths


class TestPipeline:

    def test_run_pipeline(self, history, registry, now, tmp_path):
        results = run_pipeline(history, registry.fetch_all(), now=now, output_dir=str(tmp_path), verbose=False)
        assert len(results['readings']) == 30
        assert results['summary']['record_count'] == 30
        assert len(results['maintenance']) == 2
        assert results['maintenance_summary']['failed'] == 0
        assert (tmp_path / 'scored_readings.csv').exists()

    def test_run_pipeline_from_frame(self, tmp_path):
        df = pd.DataFrame({
            'timestamp': pd.date_range('2024-01-01', periods=15, freq='min'),
            'total_output': [320.0] * 15,
            'target_output': [320.0] * 15,
        })
        results = run_pipeline(df, verbose=False)
        assert len(results['readings']) == 15
        assert 'maintenance' not in results
        assert 'paths' not in results
        # on-target throughput, no capability history in a single batch
        assert all(r['quality_score'] == 50 for r in results['readings'])
