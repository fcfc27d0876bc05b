"""
Example: Backfilling a Large CSV Export Through the Engine

Reads the export in chunks, scores each chunk as a batch and keeps the
running history in a repository, so memory stays bounded.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from extrusion_analytics import CONFIG
from extrusion_analytics.core import (
    EngineBuilder,
    LoggingObserver,
    get_logger,
    get_performance_logger,
    setup_logging
)
from extrusion_analytics.pipeline import frame_to_readings
from extrusion_analytics.repository import InMemoryReadingRepository
from extrusion_analytics.reporting import analytics_summary

# Setup logging
setup_logging(log_dir='logs')
logger = get_logger('backfill')
perf_logger = get_performance_logger()


def backfill(filepath: str, chunk_rows: int = 1000):
    """
    Score a CSV export chunk by chunk.

    Args:
        filepath: Path to CSV file with a timestamp column
        chunk_rows: Rows read from disk at a time

    Returns:
        Repository holding every scored reading
    """
    repository = InMemoryReadingRepository()
    engine = (
        EngineBuilder()
        .with_repository(repository)
        .with_observer(LoggingObserver())
        .verbose(False)
        .build()
    )

    logger.info(f"Starting backfill of {filepath}")
    perf_logger.start_timer('backfill')

    total = 0
    for chunk_num, chunk in enumerate(pd.read_csv(filepath, parse_dates=['timestamp'], chunksize=chunk_rows)):
        readings = frame_to_readings(chunk)
        engine.process_readings(readings, batch_size=CONFIG['batch_size'])
        total += len(readings)
        if chunk_num % 10 == 0:
            logger.info(f"Processed {chunk_num + 1} chunks ({total:,} readings)")

    duration = perf_logger.stop_timer('backfill')
    engine.analytics_logger.log_summary()
    logger.info(f"Backfill complete: {total:,} readings in {duration:.1f}s")
    return repository


if __name__ == '__main__':
    data_file = str(Path(__file__).parent / 'demo_extrusion_data.csv')

    if not Path(data_file).exists():
        print(f"\nFile not found: {data_file}")
        print("Run create_demo_data.py first.")
        sys.exit(1)

    repository = backfill(data_file, chunk_rows=200)

    summary = analytics_summary(repository.all())
    print(f"\n{'='*60}")
    print("BACKFILL SUMMARY")
    print(f"{'='*60}")
    for key, value in summary.items():
        print(f"  {key}: {value}")
