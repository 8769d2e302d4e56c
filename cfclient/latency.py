"""
HTTP latency measurement.

Issues a fixed number of tiny downloads one after another and derives a
latency sample from each: time-to-first-byte minus the server's own
processing time, which leaves the network round trip.  Requests never
overlap, so bandwidth contention cannot skew TTFB.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .constants import DEFAULT_LATENCY_BYTES, DEFAULT_LATENCY_COUNT
from .errors import MeasurementError, NetworkError
from .stats import LatencyStats

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class LatencyResult:
    """Latency samples in collection order plus their statistics."""

    samples: List[float] = field(default_factory=list)
    attempts: int = 0
    failures: int = 0
    stats: Optional[LatencyStats] = None

    def calculate(self) -> LatencyStats:
        """Compute ``stats``; raises ``EmptySeriesError`` if every sample failed."""
        self.stats = LatencyStats.from_samples(self.samples)
        return self.stats

    def to_dict(self) -> dict:
        result: dict = {
            "attempts": self.attempts,
            "failures": self.failures,
        }
        if self.stats:
            result.update(self.stats.to_dict())
        else:
            result["samples"] = [round(s, 3) for s in self.samples]
        return result


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class LatencyTester:
    """Sequential TTFB-based latency sampler."""

    def __init__(
        self,
        executor,  # noqa: ANN001 (RequestExecutor or anything with download())
        count: int = DEFAULT_LATENCY_COUNT,
        num_bytes: int = DEFAULT_LATENCY_BYTES,
    ) -> None:
        self.executor = executor
        self.count = count
        self.num_bytes = num_bytes
        self.on_progress: Optional[Callable[[int, int], None]] = None

    async def run(self) -> LatencyResult:
        result = LatencyResult()

        for i in range(self.count):
            result.attempts += 1
            try:
                record = await self.executor.download(self.num_bytes)
                result.samples.append(record.latency_ms)
            except (NetworkError, MeasurementError) as exc:
                result.failures += 1
                logger.warning("Latency sample %d/%d failed: %s", i + 1, self.count, exc)

            if self.on_progress:
                self.on_progress(i + 1, self.count)

        result.calculate()
        return result
