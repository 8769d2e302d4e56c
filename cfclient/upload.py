"""
Upload speed test module.

Uses HTTPS POST with a filler body.  Upload completion is only visible
to the server, so each sample divides the payload by the server-reported
processing time rather than by any client-side phase.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .constants import SPEED_QUANTILE, UPLOAD_PRESETS
from .download import PresetRun
from .errors import MeasurementError, NetworkError
from .stats import SpeedStats, measure_speed
from .timing import TimingRecord

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Upload test result."""

    runs: List[PresetRun] = field(default_factory=list)
    stats: Optional[SpeedStats] = None

    @property
    def samples(self) -> List[float]:
        return [s for run in self.runs for s in run.samples]

    @property
    def speed_mbps(self) -> float:
        return self.stats.p90 if self.stats else 0.0

    def calculate(self) -> SpeedStats:
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


def upload_speed(record: TimingRecord, num_bytes: int) -> float:
    """Mbps using the server-side processing time as the transfer duration."""
    return measure_speed(num_bytes, record.server_processing_ms)


class UploadTester:
    """Sequential upload throughput sampler."""

    def __init__(self, executor) -> None:  # noqa: ANN001
        self.executor = executor
        self.on_progress: Optional[Callable[[int, int], None]] = None

    async def measure(self, num_bytes: int, iterations: int) -> List[float]:
        samples: List[float] = []

        for i in range(iterations):
            try:
                record = await self.executor.upload(num_bytes)
                samples.append(upload_speed(record, num_bytes))
            except (NetworkError, MeasurementError) as exc:
                logger.warning(
                    "Upload sample %d/%d (%d bytes) failed: %s",
                    i + 1, iterations, num_bytes, exc,
                )

            if self.on_progress:
                self.on_progress(i + 1, iterations)

        return samples

    async def run(
        self,
        presets: Sequence[Tuple[int, int]] = UPLOAD_PRESETS,
    ) -> UploadResult:
        result = UploadResult()
        for num_bytes, iterations in presets:
            samples = await self.measure(num_bytes, iterations)
            result.runs.append(PresetRun(num_bytes, iterations, samples))
        result.calculate()
        return result
