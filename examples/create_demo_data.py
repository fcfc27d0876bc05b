"""
Create synthetic demo data for testing the pipeline
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pandas as pd

from extrusion_analytics.config import EXTRUDERS

# Generate ~8 hours of synthetic line telemetry
print("Creating synthetic extrusion line data...")

# Parameters
n_samples = 500  # one reading per minute
rng = np.random.default_rng(42)

# Timestamps
date_rng = pd.date_range(start='2025-10-01 08:00:00', periods=n_samples, freq='min')

data = {
    'timestamp': date_rng,
    'total_output': 320 + rng.normal(0, 3, n_samples),
    'target_output': 320.0,
    'actual_thickness': 25 + rng.normal(0, 0.08, n_samples),
    'target_thickness': 25.0,
    'blower_load_1': 75 + rng.normal(0, 2, n_samples),
    'blower_load_2': 75 + rng.normal(0, 2, n_samples),
    'blower_exhaust_actual': 30 + rng.normal(0, 0.5, n_samples),
    'blower_exhaust_setpoint': 30.0,
}
for extruder in EXTRUDERS:
    data[f'{extruder}_pressure'] = 450 + rng.normal(0, 8, n_samples)
    data[f'{extruder}_temperature'] = 200 + rng.normal(0, 1.5, n_samples)

df = pd.DataFrame(data)

# Add some anomalies
# Reading 200: pressure surge on every extruder
for extruder in EXTRUDERS:
    df.loc[200, f'{extruder}_pressure'] = 640.0

# Reading 300: blower trip
df.loc[300, ['blower_load_1', 'blower_load_2', 'blower_exhaust_actual']] = [140.0, 138.0, 55.0]

# Readings 400-409: thickness drift
df.loc[400:409, 'actual_thickness'] += np.linspace(0.5, 1.5, 10)

# Reading 450: sensor dropout (implausible throughput)
df.loc[450, 'total_output'] = 0.0

# Save
output_file = 'demo_extrusion_data.csv'
df.to_csv(output_file, index=False)

print(f"Created {output_file}")
print(f"  - {len(df)} rows")
print(f"  - Time range: {df['timestamp'].min()} to {df['timestamp'].max()}")
print()
print("Anomalies injected:")
print("  - Reading 200: Pressure surge")
print("  - Reading 300: Blower trip")
print("  - Readings 400-409: Thickness drift")
print("  - Reading 450: Throughput dropout")
print()
print(f"Run: py example_usage.py (update path to: {output_file})")
