"""
Output formatting -- machine-readable JSON result.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from cfclient.constants import (
    DOWNLOAD_WARN_MBPS,
    JITTER_AVG_WARN_MS,
    JITTER_P99_WARN_MS,
    LATENCY_AVG_WARN_MS,
    LATENCY_P99_WARN_MS,
    UPLOAD_WARN_MBPS,
)

from .console import is_warning


def create_result_json(
    server_colo: str,
    server_city: str,
    client_info: Dict[str, Any],
    latency_results: Dict[str, Any],
    download_results: Dict[str, Any],
    upload_results: Dict[str, Any],
) -> Dict[str, Any]:
    """Build the JSON result document for one run."""
    mean = latency_results.get("mean", 0)
    p99 = latency_results.get("p99", 0)
    jitter = latency_results.get("jitter", 0)
    jitter_p99 = latency_results.get("jitter_p99", 0)
    download = download_results.get("speed_mbps", 0)
    upload = upload_results.get("speed_mbps", 0)

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server": {"colo": server_colo, "city": server_city},
        "client": client_info,
        "latency": latency_results,
        "download": download_results,
        "upload": upload_results,
        "warnings": {
            "latency_avg": is_warning(mean, LATENCY_AVG_WARN_MS, lower_better=True),
            "latency_p99": is_warning(p99, LATENCY_P99_WARN_MS, lower_better=True),
            "jitter_avg": is_warning(jitter, JITTER_AVG_WARN_MS, lower_better=True),
            "jitter_p99": is_warning(jitter_p99, JITTER_P99_WARN_MS, lower_better=True),
            "download": is_warning(download, DOWNLOAD_WARN_MBPS, lower_better=False),
            "upload": is_warning(upload, UPLOAD_WARN_MBPS, lower_better=False),
        },
    }
