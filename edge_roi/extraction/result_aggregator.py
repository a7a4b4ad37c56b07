"""
Collects per-quadrilateral ROI records and run metadata into a RunResult.
"""

import logging
import time
from typing import Tuple

from edge_roi.extraction.types import ErrorType, ROIRecord, RunResult, SkipReason

logger = logging.getLogger(__name__)


class ResultAggregator:
    """
    Accumulates the outcome of one pipeline run.

    The wall-clock timer starts when the aggregator is created and stops in
    `finalize`. Records keep detection order.

    Example:
        >>> aggregator = ResultAggregator(image_size=(100, 100))
        >>> aggregator.count_quadrilateral()
        >>> aggregator.add(record)
        >>> result = aggregator.finalize()
        >>> print(result.quadrilateral_count, len(result.results))
        1 1
    """

    def __init__(self, image_size: Tuple[int, int] = (0, 0)):
        self._start = time.perf_counter()
        self._result = RunResult(image_size=image_size)

    @property
    def result(self) -> RunResult:
        """The RunResult being built."""
        return self._result

    def count_quadrilateral(self) -> None:
        """Record one quadrilateral accepted by the filter."""
        self._result.quadrilateral_count += 1

    def add(self, record: ROIRecord) -> None:
        """Append an extracted ROI."""
        self._result.results.append(record)

    def skip(self, reason: SkipReason) -> None:
        """Record an accepted quadrilateral that produced no ROI."""
        self._result.skipped_count += 1
        logger.debug(f"Quadrilateral skipped: {reason.value}")

    def fail(self, error_type: ErrorType, message: str) -> RunResult:
        """
        Mark the run as failed and return the finalized result.

        Records collected so far are discarded: a failed run carries no
        partial output.
        """
        logger.error(f"{error_type.value}: {message}")
        self._result.success = False
        self._result.error_type = error_type
        self._result.error_message = message
        self._result.results = []
        return self.finalize()

    def finalize(self) -> RunResult:
        """Stop the timer and return the RunResult."""
        elapsed_ms = (time.perf_counter() - self._start) * 1000.0
        self._result.processing_time_ms = elapsed_ms
        return self._result
