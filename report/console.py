"""
Rich-based terminal report for speedtest results.

All numeric helpers live in ``cfclient.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from cfclient.constants import (
    DOWNLOAD_WARN_MBPS,
    JITTER_AVG_WARN_MS,
    JITTER_P99_WARN_MS,
    LATENCY_AVG_WARN_MS,
    LATENCY_P99_WARN_MS,
    UPLOAD_WARN_MBPS,
)
from cfclient.stats import LatencyStats, format_bytes, format_speed, median

console = Console()
err_console = Console(stderr=True)

_LABEL_WIDTH = 17


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def setup_logging(verbose: bool = False) -> None:
    """Route ``logging`` records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose, markup=False)],
        force=True,
    )


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def is_warning(value: float, warn_threshold: float, lower_better: bool) -> bool:
    return value > warn_threshold if lower_better else value < warn_threshold


def format_result(value: float, unit: str, warn_threshold: float, lower_better: bool) -> str:
    """Rich markup for *value*: bold red with ``(WARN)`` when out of bounds."""
    if is_warning(value, warn_threshold, lower_better):
        return f"[bold red]{value:.2f} {unit} (WARN)[/bold red]"
    return f"[green]{value:.2f} {unit}[/green]"


def format_latency_result(value: float, warn_threshold: float) -> str:
    return format_result(value, "ms", warn_threshold, lower_better=True)


def format_speed_result(value: float, warn_threshold: float) -> str:
    return format_result(value, "Mbps", warn_threshold, lower_better=False)


def _line(label: str, value: str) -> str:
    return f"{label + ':':>{_LABEL_WIDTH}} {value}"


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_info(label: str, value: str) -> None:
    console.print(_line(label, f"[blue]{escape(value)}[/blue]"))


def print_latency(stats: LatencyStats) -> None:
    # "avg" is the arithmetic mean; the median is only exported in JSON.
    console.print(_line("Latency (avg)", format_latency_result(stats.mean, LATENCY_AVG_WARN_MS)))
    console.print(_line("Latency (p99)", format_latency_result(stats.p99, LATENCY_P99_WARN_MS)))
    console.print(_line("Jitter (avg)", format_latency_result(stats.jitter, JITTER_AVG_WARN_MS)))
    console.print(_line("Jitter (p99)", format_latency_result(stats.jitter_p99, JITTER_P99_WARN_MS)))


def print_download_speed(speed_mbps: float) -> None:
    console.print(_line("Download speed", format_speed_result(speed_mbps, DOWNLOAD_WARN_MBPS)))


def print_upload_speed(speed_mbps: float) -> None:
    console.print(_line("Upload speed", format_speed_result(speed_mbps, UPLOAD_WARN_MBPS)))


def print_preset_result(num_bytes: int, samples: List[float]) -> None:
    """Per-size median line printed in ``--full`` mode."""
    label = f"{format_bytes(num_bytes)} speed"
    if not samples:
        console.print(_line(label, "[dim]no samples[/dim]"))
        return
    console.print(f"[bold]{_line(label, f'[yellow]{format_speed(median(samples))}[/yellow]')}[/bold]")


def print_error(message: str) -> None:
    err_console.print(f"[red]Error: {escape(message)}[/red]")


# ---------------------------------------------------------------------------
# Progress display
# ---------------------------------------------------------------------------

class ProgressDisplay:
    """Manages a transient ``rich`` progress bar over request iterations."""

    def __init__(self) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=err_console,
            transient=True,
        )
        self._task_id: Optional[int] = None

    def start(self, description: str) -> None:
        self.progress.start()
        self._task_id = self.progress.add_task(description, total=None)

    def update(self, done: int, total: int) -> None:
        if self._task_id is None:
            return
        self.progress.update(self._task_id, completed=done, total=total)

    def stop(self) -> None:
        self.progress.stop()
        self._task_id = None
