#!/usr/bin/env python3
"""
Cloudflare speedtest CLI -- latency, jitter, and throughput from the terminal.

Usage::

    python cfspeedtest.py                   # coloured report
    python cfspeedtest.py --json            # JSON to stdout
    python cfspeedtest.py --full            # larger download/upload presets
    python cfspeedtest.py --timeout 30      # per-request deadline in seconds
    python cfspeedtest.py --latency-count 20 --verbose
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence, Tuple

from cfclient.api import SpeedtestAPI, city_for
from cfclient.config import load_config, parse_presets
from cfclient.constants import (
    EXTENDED_DOWNLOAD_PRESETS,
    EXTENDED_UPLOAD_PRESETS,
    MAX_LATENCY_COUNT,
    MAX_TIMEOUT,
    MIN_LATENCY_COUNT,
    MIN_TIMEOUT,
)
from cfclient.download import DownloadTester
from cfclient.errors import SpeedtestError
from cfclient.latency import LatencyTester
from cfclient.request import RequestExecutor
from cfclient.upload import UploadTester
from report.console import (
    ProgressDisplay,
    print_download_speed,
    print_error,
    print_info,
    print_latency,
    print_preset_result,
    print_upload_speed,
    setup_logging,
)
from report.output import create_result_json

logger = logging.getLogger("cfspeedtest")

Presets = Sequence[Tuple[int, int]]


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

def _validate(latency_count: Optional[int], timeout: Optional[float]) -> None:
    """Raise ``ValueError`` if any parameter is out of range (``None`` means unset)."""
    if latency_count is not None and not MIN_LATENCY_COUNT <= latency_count <= MAX_LATENCY_COUNT:
        raise ValueError(
            f"Latency count must be between {MIN_LATENCY_COUNT} and {MAX_LATENCY_COUNT}"
        )
    if timeout is not None and not MIN_TIMEOUT <= timeout <= MAX_TIMEOUT:
        raise ValueError(f"Timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} s")


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

async def run_speedtest(
    *,
    json_output: bool = False,
    full: bool = False,
    hostname: Optional[str] = None,
    base_url: Optional[str] = None,
    latency_count: Optional[int] = None,
    latency_bytes: Optional[int] = None,
    download_presets: Optional[Presets] = None,
    upload_presets: Optional[Presets] = None,
    timeout: Optional[float] = None,
) -> dict:
    """Execute the full measurement sequence and return a JSON-serialisable dict.

    Unset parameters come from the user config file.  Out-of-range values,
    from either source, raise ``ValueError``.  Metadata failures and an
    empty sample series raise ``SpeedtestError``.
    """
    config = load_config()
    hostname = hostname or config["hostname"]
    if latency_count is None:
        latency_count = int(config["latency_count"])
    if latency_bytes is None:
        latency_bytes = int(config["latency_bytes"])
    if timeout is None and config["request_timeout"] is not None:
        timeout = float(config["request_timeout"])
    if download_presets is None:
        download_presets = EXTENDED_DOWNLOAD_PRESETS if full else parse_presets(config["download_presets"])
    if upload_presets is None:
        upload_presets = EXTENDED_UPLOAD_PRESETS if full else parse_presets(config["upload_presets"])
    _validate(latency_count, timeout)

    show_ui = not json_output
    if timeout is not None:
        logger.debug("Per-request deadline set to %.1f s", timeout)

    async with SpeedtestAPI(hostname, base_url=base_url, timeout=timeout) as api, \
            RequestExecutor(hostname, base_url=base_url, timeout=timeout) as executor:

        # -- Metadata + latency (concurrent) --------------------------------
        latency_tester = LatencyTester(executor, count=latency_count, num_bytes=latency_bytes)
        progress = ProgressDisplay() if show_ui else None
        if progress:
            progress.start("Measuring latency")
            latency_tester.on_progress = progress.update

        tasks = [
            asyncio.ensure_future(latency_tester.run()),
            asyncio.ensure_future(api.fetch_server_locations()),
            asyncio.ensure_future(api.fetch_client_trace()),
        ]
        try:
            latency, locations, trace = await asyncio.gather(*tasks)
        except BaseException:
            # one failure aborts the run; do not leave siblings on a closing session
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        finally:
            if progress:
                progress.stop()

        city = city_for(locations, trace.colo)
        if show_ui:
            print_info("Server location", f"{city} ({trace.colo})")
            print_info("Your IP", f"{trace.ip} ({trace.loc})")
            print_latency(latency.stats)

        # -- Download -------------------------------------------------------
        dl_tester = DownloadTester(executor)
        progress = ProgressDisplay() if show_ui else None
        if progress:
            progress.start("Downloading")
            dl_tester.on_progress = progress.update
        try:
            dl_result = await dl_tester.run(download_presets)
        finally:
            if progress:
                progress.stop()

        if show_ui:
            if full:
                for run in dl_result.runs:
                    print_preset_result(run.num_bytes, run.samples)
            print_download_speed(dl_result.speed_mbps)

        # -- Upload ---------------------------------------------------------
        ul_tester = UploadTester(executor)
        progress = ProgressDisplay() if show_ui else None
        if progress:
            progress.start("Uploading")
            ul_tester.on_progress = progress.update
        try:
            ul_result = await ul_tester.run(upload_presets)
        finally:
            if progress:
                progress.stop()

        if show_ui:
            if full:
                for run in ul_result.runs:
                    print_preset_result(run.num_bytes, run.samples)
            print_upload_speed(ul_result.speed_mbps)

    result_json = create_result_json(
        server_colo=trace.colo,
        server_city=city,
        client_info=trace.to_dict(),
        latency_results=latency.to_dict(),
        download_results=dl_result.to_dict(),
        upload_results=ul_result.to_dict(),
    )

    if json_output:
        print(json.dumps(result_json, indent=2))

    return result_json


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cloudflare speedtest -- latency, jitter, download and upload",
    )
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--full", action="store_true", help="Run the larger download/upload presets")
    parser.add_argument("--latency-count", type=int, default=None, metavar="N", help="Number of latency samples (default: 100)")
    parser.add_argument("--timeout", type=float, default=None, metavar="SECS", help="Per-request deadline (default: none)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging on stderr")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        _validate(
            latency_count=args.latency_count,
            timeout=args.timeout,
        )
    except ValueError as exc:
        print_error(str(exc))
        sys.exit(1)

    try:
        asyncio.run(
            run_speedtest(
                json_output=args.json,
                full=args.full,
                latency_count=args.latency_count,
                timeout=args.timeout,
            )
        )
    except KeyboardInterrupt:
        print_error("Test cancelled by user")
        sys.exit(1)
    except (SpeedtestError, ValueError) as exc:
        print_error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
