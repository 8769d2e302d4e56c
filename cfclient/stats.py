"""
Network measurement statistics.

Pure functions and lightweight dataclasses -- no I/O, no side effects.
Every function works on a copy of its input, so a collection-ordered
series can be handed to ``median``/``quantile`` and still be used for
``jitter`` afterwards.
"""
from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from typing import List, Sequence

from .errors import EmptySeriesError, MeasurementError


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------

def _require_samples(samples: Sequence[float], what: str) -> None:
    if not samples:
        raise EmptySeriesError(f"cannot compute {what} of an empty series")


def average(samples: Sequence[float]) -> float:
    """Arithmetic mean."""
    _require_samples(samples, "average")
    return statistics.mean(samples)


def median(samples: Sequence[float]) -> float:
    """Middle element, or the mean of the two middle elements."""
    _require_samples(samples, "median")
    return statistics.median(samples)


def quantile(samples: Sequence[float], q: float) -> float:
    """
    Linear-interpolation quantile for ``q`` in ``[0, 1]``.

    ``pos = (n - 1) * q``; the result interpolates between the sorted
    values at ``floor(pos)`` and the next index, or is the last value when
    ``floor(pos)`` is the last index.
    """
    _require_samples(samples, "quantile")
    if not 0.0 <= q <= 1.0:
        raise ValueError(f"quantile must be within [0, 1], got {q}")

    ordered = sorted(samples)
    pos = (len(ordered) - 1) * q
    base = math.floor(pos)
    rest = pos - base

    if base + 1 < len(ordered):
        return ordered[base] + rest * (ordered[base + 1] - ordered[base])
    return ordered[base]


def jitters(samples: Sequence[float]) -> List[float]:
    """Absolute differences between consecutive samples, in collection order."""
    return [abs(samples[i] - samples[i + 1]) for i in range(len(samples) - 1)]


def jitter(samples: Sequence[float]) -> float:
    """Mean absolute difference between consecutive samples.

    Returns ``0.0`` for fewer than two samples (there is no pair to compare),
    but still refuses an empty series.
    """
    _require_samples(samples, "jitter")
    diffs = jitters(samples)
    if not diffs:
        return 0.0
    return statistics.mean(diffs)


def jitter_quantile(samples: Sequence[float], q: float) -> float:
    """``quantile`` over the consecutive-difference series."""
    _require_samples(samples, "jitter quantile")
    diffs = jitters(samples)
    if not diffs:
        return 0.0
    return quantile(diffs, q)


def p95(samples: Sequence[float]) -> float:
    return quantile(samples, 0.95)


def p99(samples: Sequence[float]) -> float:
    return quantile(samples, 0.99)


def jitter_p95(samples: Sequence[float]) -> float:
    return jitter_quantile(samples, 0.95)


def jitter_p99(samples: Sequence[float]) -> float:
    return jitter_quantile(samples, 0.99)


def measure_speed(num_bytes: int, duration_ms: float) -> float:
    """Throughput in Mbps for *num_bytes* moved in *duration_ms*."""
    if duration_ms <= 0:
        raise MeasurementError(
            f"non-positive transfer duration ({duration_ms:.3f} ms) for {num_bytes} bytes"
        )
    return (num_bytes * 8) / (duration_ms / 1000) / 1_000_000


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass
class LatencyStats:
    """Aggregated latency statistics computed from a collection-ordered series."""

    samples: List[float] = field(default_factory=list)
    count: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    jitter: float = 0.0
    jitter_p95: float = 0.0
    jitter_p99: float = 0.0
    p95: float = 0.0
    p99: float = 0.0

    def calculate(self) -> None:
        """Fill every scalar from ``samples``; raises on an empty series."""
        _require_samples(self.samples, "latency statistics")
        # jitter first, on the series exactly as it was collected
        self.jitter = jitter(self.samples)
        self.jitter_p95 = jitter_p95(self.samples)
        self.jitter_p99 = jitter_p99(self.samples)
        self.count = len(self.samples)
        self.min = min(self.samples)
        self.max = max(self.samples)
        self.mean = average(self.samples)
        self.median = median(self.samples)
        self.p95 = p95(self.samples)
        self.p99 = p99(self.samples)

    @classmethod
    def from_samples(cls, samples: Sequence[float]) -> LatencyStats:
        stats = cls(samples=list(samples))
        stats.calculate()
        return stats

    def to_dict(self) -> dict:
        return {
            "samples": [round(s, 3) for s in self.samples],
            "count": self.count,
            "min": round(self.min, 3),
            "max": round(self.max, 3),
            "mean": round(self.mean, 3),
            "median": round(self.median, 3),
            "jitter": round(self.jitter, 3),
            "jitter_p95": round(self.jitter_p95, 3),
            "jitter_p99": round(self.jitter_p99, 3),
            "p95": round(self.p95, 3),
            "p99": round(self.p99, 3),
        }


@dataclass
class SpeedStats:
    """Aggregated throughput statistics; ``p90`` is the reported figure."""

    samples: List[float] = field(default_factory=list)
    count: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    p90: float = 0.0

    def calculate(self, q: float = 0.9) -> None:
        _require_samples(self.samples, "speed statistics")
        self.count = len(self.samples)
        self.min = min(self.samples)
        self.max = max(self.samples)
        self.mean = average(self.samples)
        self.median = median(self.samples)
        self.p90 = quantile(self.samples, q)

    @classmethod
    def from_samples(cls, samples: Sequence[float], q: float = 0.9) -> SpeedStats:
        stats = cls(samples=list(samples))
        stats.calculate(q)
        return stats

    def to_dict(self) -> dict:
        return {
            "samples": [round(s, 2) for s in self.samples],
            "count": self.count,
            "min": round(self.min, 2),
            "max": round(self.max, 2),
            "mean": round(self.mean, 2),
            "median": round(self.median, 2),
            "p90": round(self.p90, 2),
        }


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_bytes(num_bytes: int) -> str:
    """Short size label for a transfer preset (``100kB``, ``10MB``)."""
    if num_bytes >= 1_000_000:
        return f"{num_bytes // 1_000_000}MB"
    if num_bytes >= 1_000:
        return f"{num_bytes // 1_000}kB"
    return f"{num_bytes}B"
