"""
Download speed test module.

Each preset downloads a fixed payload a fixed number of times, strictly
one request at a time.  A sample's throughput uses only the transfer
phase (first byte to fully drained), which keeps connection setup out of
the figure.  The reported speed is the 0.9-quantile of all samples from
every preset.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .constants import DOWNLOAD_PRESETS, SPEED_QUANTILE
from .errors import MeasurementError, NetworkError
from .stats import SpeedStats, measure_speed, median
from .timing import TimingRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class PresetRun:
    """Samples collected for one ``(bytes, iterations)`` preset."""

    num_bytes: int
    iterations: int
    samples: List[float] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return self.iterations - len(self.samples)

    @property
    def median_mbps(self) -> Optional[float]:
        return median(self.samples) if self.samples else None

    def to_dict(self) -> dict:
        mid = self.median_mbps
        return {
            "bytes": self.num_bytes,
            "iterations": self.iterations,
            "samples": [round(s, 2) for s in self.samples],
            "median_mbps": round(mid, 2) if mid is not None else None,
        }


@dataclass
class DownloadResult:
    """Download test result."""

    runs: List[PresetRun] = field(default_factory=list)
    stats: Optional[SpeedStats] = None

    @property
    def samples(self) -> List[float]:
        return [s for run in self.runs for s in run.samples]

    @property
    def speed_mbps(self) -> float:
        return self.stats.p90 if self.stats else 0.0

    def calculate(self) -> SpeedStats:
        """Aggregate all presets; raises ``EmptySeriesError`` with no samples."""
        self.stats = SpeedStats.from_samples(self.samples, SPEED_QUANTILE)
        return self.stats

    def to_dict(self) -> dict:
        result: dict = {
            "speed_mbps": round(self.speed_mbps, 2),
            "runs": [r.to_dict() for r in self.runs],
        }
        if self.stats:
            result["stats"] = self.stats.to_dict()
        return result


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def download_speed(record: TimingRecord, num_bytes: int) -> float:
    """Mbps over the post-TTFB transfer phase."""
    return measure_speed(num_bytes, record.transfer_ms)


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class DownloadTester:
    """Sequential download throughput sampler."""

    def __init__(self, executor) -> None:  # noqa: ANN001
        self.executor = executor
        self.on_progress: Optional[Callable[[int, int], None]] = None

    async def measure(self, num_bytes: int, iterations: int) -> List[float]:
        """Download *num_bytes* *iterations* times; failed samples are skipped."""
        samples: List[float] = []

        for i in range(iterations):
            try:
                record = await self.executor.download(num_bytes)
                samples.append(download_speed(record, num_bytes))
            except (NetworkError, MeasurementError) as exc:
                logger.warning(
                    "Download sample %d/%d (%d bytes) failed: %s",
                    i + 1, iterations, num_bytes, exc,
                )

            if self.on_progress:
                self.on_progress(i + 1, iterations)

        return samples

    async def run(
        self,
        presets: Sequence[Tuple[int, int]] = DOWNLOAD_PRESETS,
    ) -> DownloadResult:
        result = DownloadResult()
        for num_bytes, iterations in presets:
            samples = await self.measure(num_bytes, iterations)
            result.runs.append(PresetRun(num_bytes, iterations, samples))
        result.calculate()
        return result
