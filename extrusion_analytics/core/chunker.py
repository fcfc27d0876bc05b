"""
Batch Chunking for Bulk Runs

Splits large reading collections (CSV imports, backfills) into engine-sized batches.
"""

from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import numpy as np

from ..config import CONFIG
from .base import BaseValidator


class BatchChunker:
    """
    Fixed-size batching of readings.

    Batches preserve input order so that earlier batches feed the in-flight
    history of later ones.
    """

    def __init__(self, batch_size: Optional[int] = None):
        """
        Initialize chunker.

        Args:
            batch_size: Readings per batch (defaults to config)
        """
        self.batch_size = int(batch_size if batch_size is not None else CONFIG['batch_size'])
        BaseValidator.validate_numeric_range(self.batch_size, 1, np.inf, 'batch_size')

    def iter_batches(self, readings: Iterable[Dict[str, Any]]) -> Iterator[List[Dict[str, Any]]]:
        """
        Iterate over readings in batches.

        Args:
            readings: Any iterable of reading dicts

        Yields:
            Lists of at most batch_size readings
        """
        batch = []
        for reading in readings:
            batch.append(reading)
            if len(batch) == self.batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    def num_batches(self, n_readings: int) -> int:
        """Number of batches needed for n readings."""
        return int(np.ceil(n_readings / self.batch_size))

    def process_in_batches(
        self,
        readings: Iterable[Dict[str, Any]],
        processor: Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]],
    ) -> List[Dict[str, Any]]:
        """
        Run a processor over each batch and concatenate the results.

        Args:
            readings: Reading dicts
            processor: Function from a batch to its annotated batch

        Returns:
            All processed readings in input order
        """
        results = []
        for batch in self.iter_batches(readings):
            results.extend(processor(batch))
        return results
