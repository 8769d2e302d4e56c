"""
Per-request timing records.

A request moves through ``start -> dns -> tcp -> tls -> first byte -> end``.
``PhaseRecorder`` collects a ``time.perf_counter()`` stamp (milliseconds)
at each transition and is turned into an immutable ``TimingRecord`` once
the body has been drained.  DNS/TCP/TLS stamps are optional: a literal IP
skips the lookup, plain HTTP has no handshake.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Dict, Optional

from .errors import NetworkError


def now_ms() -> float:
    return time.perf_counter() * 1000


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimingRecord:
    """Timestamps (ms, monotonic clock) for one completed HTTP exchange."""

    start: float
    first_byte: float
    end: float
    server_processing_ms: float
    dns_resolved: Optional[float] = None
    tcp_connected: Optional[float] = None
    tls_handshaked: Optional[float] = None
    status: int = 0
    bytes_received: int = 0

    @property
    def ttfb_ms(self) -> float:
        return self.first_byte - self.start

    @property
    def transfer_ms(self) -> float:
        """Body transfer time, first byte to drain-complete."""
        return self.end - self.first_byte

    @property
    def latency_ms(self) -> float:
        """TTFB minus server-side processing time."""
        return self.first_byte - self.start - self.server_processing_ms

    @property
    def dns_ms(self) -> Optional[float]:
        if self.dns_resolved is None:
            return None
        return self.dns_resolved - self.start

    @property
    def connect_ms(self) -> Optional[float]:
        if self.tcp_connected is None:
            return None
        return self.tcp_connected - (self.dns_resolved or self.start)

    @property
    def tls_ms(self) -> Optional[float]:
        if self.tls_handshaked is None:
            return None
        return self.tls_handshaked - (self.tcp_connected or self.dns_resolved or self.start)

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "start": self.start,
            "dns_resolved": self.dns_resolved,
            "tcp_connected": self.tcp_connected,
            "tls_handshaked": self.tls_handshaked,
            "first_byte": self.first_byte,
            "end": self.end,
            "server_processing_ms": self.server_processing_ms,
            "status": self.status,
            "bytes_received": self.bytes_received,
        }


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------

class PhaseRecorder:
    """Single-resolution collector of phase timestamps for one request."""

    PHASES = ("start", "dns_resolved", "tcp_connected", "tls_handshaked", "first_byte", "end")

    def __init__(self) -> None:
        self._marks: Dict[str, float] = {}
        self._record: Optional[TimingRecord] = None

    def mark(self, phase: str, when: Optional[float] = None) -> float:
        if phase not in self.PHASES:
            raise ValueError(f"unknown phase {phase!r}")
        if self._record is not None:
            raise RuntimeError("recorder already finished")
        if phase in self._marks:
            raise RuntimeError(f"phase {phase!r} recorded twice")
        stamp = now_ms() if when is None else when
        self._marks[phase] = stamp
        return stamp

    def has(self, phase: str) -> bool:
        return phase in self._marks

    @property
    def done(self) -> bool:
        return self._record is not None

    def finish(self, server_processing_ms: float, status: int = 0, bytes_received: int = 0) -> TimingRecord:
        if self._record is not None:
            raise RuntimeError("recorder already finished")
        missing = [p for p in ("start", "first_byte", "end") if p not in self._marks]
        if missing:
            raise RuntimeError(f"cannot finish, missing phases: {', '.join(missing)}")

        self._record = TimingRecord(
            start=self._marks["start"],
            dns_resolved=self._marks.get("dns_resolved"),
            tcp_connected=self._marks.get("tcp_connected"),
            tls_handshaked=self._marks.get("tls_handshaked"),
            first_byte=self._marks["first_byte"],
            end=self._marks["end"],
            server_processing_ms=server_processing_ms,
            status=status,
            bytes_received=bytes_received,
        )
        return self._record


# ---------------------------------------------------------------------------
# Server-Timing header
# ---------------------------------------------------------------------------

def parse_server_timing(value: Optional[str], metric: str) -> float:
    """
    Return the ``dur`` parameter of *metric* from a ``Server-Timing`` value.

    The header is a comma-separated list of ``name;param=value;...`` entries,
    e.g. ``cfRequestDuration;dur=12.345``.  Raises ``NetworkError`` when the
    header, the metric, or its ``dur`` is missing or not a number.
    """
    if not value:
        raise NetworkError("response has no server-timing header")

    for entry in value.split(","):
        parts = [p.strip() for p in entry.split(";")]
        if parts[0] != metric:
            continue
        for param in parts[1:]:
            key, sep, raw = param.partition("=")
            if not sep or key.strip().lower() != "dur":
                continue
            raw = raw.strip().strip('"')
            try:
                duration = float(raw)
            except ValueError:
                duration = math.nan
            if not math.isfinite(duration):
                raise NetworkError(f"malformed server-timing duration {raw!r} for {metric}")
            return duration
        raise NetworkError(f"server-timing metric {metric} has no dur parameter")

    raise NetworkError(f"server-timing header {value!r} has no {metric} metric")
