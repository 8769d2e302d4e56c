"""
Shared constants used across all client modules.

Centralises endpoints, presets, thresholds, and default headers so they
live in exactly one place.
"""

# ---------------------------------------------------------------------------
# HTTP headers
# ---------------------------------------------------------------------------

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36"
)

# identity encoding keeps bytes on the wire equal to the payload size
COMMON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Accept-Encoding": "identity",
}

# ---------------------------------------------------------------------------
# Cloudflare endpoints
# ---------------------------------------------------------------------------

DEFAULT_HOSTNAME = "speed.cloudflare.com"

DOWNLOAD_PATH = "/__down"
UPLOAD_PATH = "/__up"
LOCATIONS_PATH = "/locations"
TRACE_PATH = "/cdn-cgi/trace"

SERVER_TIMING_HEADER = "server-timing"
SERVER_TIMING_METRIC = "cfRequestDuration"

# ---------------------------------------------------------------------------
# Latency
# ---------------------------------------------------------------------------

DEFAULT_LATENCY_COUNT = 100
DEFAULT_LATENCY_BYTES = 200
MIN_LATENCY_COUNT = 1
MAX_LATENCY_COUNT = 1000

# ---------------------------------------------------------------------------
# Transfer presets: (bytes, iterations)
# ---------------------------------------------------------------------------

DOWNLOAD_PRESETS = [(101_000, 2)]
EXTENDED_DOWNLOAD_PRESETS = [
    (101_000, 2),
    (1_001_000, 8),
    (10_001_000, 6),
    (25_001_000, 4),
    (100_001_000, 1),
]

UPLOAD_PRESETS = [(11_000, 2)]
EXTENDED_UPLOAD_PRESETS = [
    (11_000, 2),
    (101_000, 10),
    (1_001_000, 8),
]

CHUNK_SIZE = 64 * 1024           # read size while draining a response body
UPLOAD_FILLER = b"0"

# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

SPEED_QUANTILE = 0.9

LATENCY_AVG_WARN_MS = 65.0
LATENCY_P99_WARN_MS = 85.0
JITTER_AVG_WARN_MS = 10.0
JITTER_P99_WARN_MS = 15.0
DOWNLOAD_WARN_MBPS = 3.0
UPLOAD_WARN_MBPS = 1.0

# ---------------------------------------------------------------------------
# Timeouts
# ---------------------------------------------------------------------------

MIN_TIMEOUT = 0.1
MAX_TIMEOUT = 600.0
