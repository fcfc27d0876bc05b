"""
Example Usage Script

Demonstrates how to use the extrusion line analytics pipeline.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from extrusion_analytics import run_pipeline
from extrusion_analytics.reporting import anomaly_event_log, maintenance_table, current_status
import pandas as pd

NOW = datetime(2025, 10, 1, 16, 30)

EQUIPMENT = [
    {
        'id': 'EXT-A',
        'name': 'Extruder A',
        'type': 'extruder',
        'installation_date': NOW - timedelta(days=6 * 365),
        'last_maintenance_date': NOW - timedelta(days=150),
        'specifications': {'power_rating': 160},
        'maintenance_history': [
            {'date': NOW - timedelta(days=40), 'type': 'emergency', 'parts': ['screw']},
            {'date': NOW - timedelta(days=150), 'type': 'preventive'},
        ],
        'sensors': [
            {'name': 'melt pressure', 'type': 'pressure', 'unit': 'bar', 'normal_range': {'min': 300, 'max': 600}},
            {'name': 'melt temperature', 'type': 'temperature', 'unit': 'C', 'normal_range': {'min': 180, 'max': 220}},
        ],
        'status': 'operational',
    },
    {
        'id': 'BLW-1',
        'name': 'Cooling Blower 1',
        'type': 'blower',
        'installation_date': NOW - timedelta(days=2 * 365),
        'last_maintenance_date': NOW - timedelta(days=30),
        'specifications': {'power_rating': 45},
        'sensors': [{'name': 'load', 'type': 'pressure', 'normal_range': {'min': 0, 'max': 120}}],
        'status': 'operational',
    },
    {
        'id': 'WND-1',
        'name': 'Winder',
        'type': 'winder',
        'installation_date': NOW - timedelta(days=12 * 365),
        'specifications': {'power_rating': 30},
        'sensors': [{'name': 'line flow', 'type': 'flow', 'normal_range': {'min': 1000, 'max': 1500}}],
        'status': 'maintenance',
    },
]

# ===================================================================
# Example 1: Run complete pipeline on your CSV file
# ===================================================================

if __name__ == '__main__':
    # Path to your data file
    # For demo, using synthetic data from create_demo_data.py:
    data_file = str(Path(__file__).parent / 'demo_extrusion_data.csv')

    try:
        df = pd.read_csv(data_file, parse_dates=['timestamp'])

        # Run the complete pipeline
        results = run_pipeline(
            df,
            equipment=EQUIPMENT,
            now=NOW,
            output_dir='outputs',
            verbose=True
        )

        # Access results
        readings = results['readings']
        summary = results['summary']
        predictions = results['maintenance']

        # Print summary
        print("\n" + "=" * 80)
        print("SUMMARY STATISTICS")
        print("=" * 80)
        for key, value in summary.items():
            print(f"  {key}: {value}")

        # ===================================================================
        # Example 2: Top anomalies
        # ===================================================================

        print("\n" + "=" * 80)
        print("TOP ANOMALIES")
        print("=" * 80)
        top = results['recent_anomalies']
        if top.empty:
            print("No readings above the anomaly threshold")
        else:
            print(top[['timestamp', 'anomaly_score', 'anomaly_method', 'anomaly_parameters']])

        # ===================================================================
        # Example 3: Quality and current status
        # ===================================================================

        print("\n" + "=" * 80)
        print("QUALITY")
        print("=" * 80)
        scores = pd.Series([r['quality_score'] for r in readings])
        print(scores.describe())

        latest = current_status(readings)
        print(f"\nLatest reading: {latest['timestamp']} "
              f"(quality {latest['quality_score']}, capability {latest['process_capability']})")

        # ===================================================================
        # Example 4: Maintenance and event log
        # ===================================================================

        print("\n" + "=" * 80)
        print("MAINTENANCE SCHEDULE")
        print("=" * 80)
        print(maintenance_table(predictions))

        events = anomaly_event_log(readings)
        print(f"\nTotal anomaly events: {len(events)}")
        if not events.empty:
            print(events['severity'].value_counts())

        print("\n" + "=" * 80)
        print("PIPELINE EXECUTION COMPLETE")
        print("=" * 80)
        print("\nOutput files saved to 'outputs/' directory:")
        for path in results['paths'].values():
            print(f"  - {path}")
        print("=" * 80)

    except FileNotFoundError:
        print("\n" + "=" * 80)
        print("ERROR: Data file not found")
        print("=" * 80)
        print(f"Expected file: {data_file}")
        print("\nRun create_demo_data.py first, or update the 'data_file'")
        print("variable in this script to point to your CSV export.")
        print("=" * 80)
