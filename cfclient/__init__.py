"""Cloudflare speedtest client library -- timed requests, measurement, and statistics."""

from .api import ClientTrace, SpeedtestAPI, city_for, parse_locations, parse_trace
from .download import DownloadResult, DownloadTester, PresetRun
from .errors import (
    EmptySeriesError,
    MeasurementError,
    NetworkError,
    ParseError,
    SpeedtestError,
)
from .latency import LatencyResult, LatencyTester
from .request import RequestExecutor
from .stats import (
    LatencyStats,
    SpeedStats,
    average,
    jitter,
    jitter_quantile,
    measure_speed,
    median,
    quantile,
)
from .timing import PhaseRecorder, TimingRecord, parse_server_timing
from .upload import UploadResult, UploadTester

__all__ = [
    "ClientTrace",
    "DownloadResult",
    "DownloadTester",
    "EmptySeriesError",
    "LatencyResult",
    "LatencyStats",
    "LatencyTester",
    "MeasurementError",
    "NetworkError",
    "ParseError",
    "PhaseRecorder",
    "PresetRun",
    "RequestExecutor",
    "SpeedStats",
    "SpeedtestAPI",
    "SpeedtestError",
    "TimingRecord",
    "UploadResult",
    "UploadTester",
    "average",
    "city_for",
    "jitter",
    "jitter_quantile",
    "measure_speed",
    "median",
    "parse_locations",
    "parse_server_timing",
    "parse_trace",
    "quantile",
]
