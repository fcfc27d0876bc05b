"""
Main Analytics Pipeline

End-to-end run: score readings in batches, predict maintenance, summarise.
"""

import numpy as np
import pandas as pd

from .config import CONFIG
from .core import EngineBuilder, LoggingObserver
from .reporting import (
    analytics_summary,
    maintenance_summary,
    recent_anomalies,
    save_outputs,
)
from .repository import InMemoryEquipmentRegistry, InMemoryReadingRepository


def frame_to_readings(df):
    """
    Convert a flat DataFrame into reading dicts.

    NaN cells are dropped so they resolve as missing values.
    """
    return [
        {k: v for k, v in row.items() if not (isinstance(v, float) and np.isnan(v))}
        for row in df.to_dict(orient='records')
    ]


def run_pipeline(
    readings,
    equipment=None,
    cfg=CONFIG,
    repository=None,
    readings_by_id=None,
    now=None,
    output_dir=None,
    verbose=True
):
    """
    Run the complete analytics pipeline.

    Pipeline steps:
    1. Score readings (anomaly + quality) in batches
    2. Predict maintenance for every equipment unit
    3. Summarise and optionally save outputs

    Args:
        readings: List of reading dicts or a flat DataFrame
        equipment: Equipment documents (skips maintenance when None)
        cfg: Configuration dictionary
        repository: ReadingRepository (defaults to an in-memory store)
        readings_by_id: Current reading per equipment id
        now: Evaluation time for maintenance
        output_dir: Directory for CSV outputs (nothing saved when None)
        verbose: Print progress messages

    Returns:
        dict: Results dictionary with scored readings, predictions and summaries
    """
    results = {}

    if isinstance(readings, pd.DataFrame):
        readings = frame_to_readings(readings)

    repository = repository if repository is not None else InMemoryReadingRepository(cfg=cfg)
    builder = (
        EngineBuilder()
        .with_config(cfg)
        .with_repository(repository)
        .verbose(verbose)
    )
    if equipment is not None:
        builder.with_registry(InMemoryEquipmentRegistry(equipment))
    if verbose:
        builder.with_observer(LoggingObserver())
    engine = builder.build()
    results['engine'] = engine

    # === Phase 1: Reading Analytics ===
    if verbose:
        print("\n" + "=" * 80)
        print("PHASE 1: ANOMALY DETECTION & QUALITY SCORING")
        print("=" * 80)

    scored = engine.process_readings(readings)
    results['readings'] = scored

    if verbose:
        print(f"Readings scored: {len(scored)}")
        print(f"Anomalies flagged: {sum(1 for r in scored if r.get('is_anomaly'))}")

    # === Phase 2: Maintenance Prediction ===
    predictions = None
    if equipment is not None:
        if verbose:
            print("\n" + "=" * 80)
            print("PHASE 2: MAINTENANCE PREDICTION")
            print("=" * 80)

        predictions = engine.predict_maintenance(readings_by_id, now)
        results['maintenance'] = predictions
        results['maintenance_summary'] = maintenance_summary(predictions)

        if verbose:
            print("Risk distribution:", results['maintenance_summary']['by_risk'])

    # === Phase 3: Reporting ===
    if verbose:
        print("\n" + "=" * 80)
        print("PHASE 3: REPORTING")
        print("=" * 80)

    results['summary'] = analytics_summary(scored, cfg=cfg)
    results['recent_anomalies'] = recent_anomalies(scored, cfg=cfg)

    if output_dir is not None:
        results['paths'] = save_outputs(scored, predictions, output_dir, cfg)

    # === Final Summary ===
    if verbose:
        summary = results['summary']
        print("\n" + "=" * 80)
        print("PIPELINE COMPLETE")
        print("=" * 80)
        print(f"Total readings analyzed: {summary['record_count']}")
        print(f"Anomalies above {cfg['reporting']['anomaly_threshold']}: {summary['anomaly_count']}")
        if predictions is not None:
            print(f"Equipment units assessed: {len(predictions)}")
        print("=" * 80)

    return results
