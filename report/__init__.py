"""Report layer -- rich terminal output and JSON formatter."""

from .console import (
    ProgressDisplay,
    console,
    format_latency_result,
    format_result,
    format_speed_result,
    print_download_speed,
    print_error,
    print_info,
    print_latency,
    print_preset_result,
    print_upload_speed,
    setup_logging,
)
from .output import create_result_json

__all__ = [
    "ProgressDisplay",
    "console",
    "create_result_json",
    "format_latency_result",
    "format_result",
    "format_speed_result",
    "print_download_speed",
    "print_error",
    "print_info",
    "print_latency",
    "print_preset_result",
    "print_upload_speed",
    "setup_logging",
]
