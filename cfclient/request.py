"""
Timed HTTP request executor.

Every exchange runs on a fresh connection (``force_close``, no DNS cache)
so the DNS, TCP and TLS phases are observed for each request.  Phase
stamps come from ``aiohttp.TraceConfig`` signals; the first-byte stamp is
taken when the response headers arrive and the end stamp once the body
has been fully drained.

Usage::

    async with RequestExecutor() as executor:
        record = await executor.download(200)
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from .constants import (
    CHUNK_SIZE,
    COMMON_HEADERS,
    DEFAULT_HOSTNAME,
    DOWNLOAD_PATH,
    SERVER_TIMING_HEADER,
    SERVER_TIMING_METRIC,
    UPLOAD_FILLER,
    UPLOAD_PATH,
)
from .errors import NetworkError
from .timing import PhaseRecorder, TimingRecord, parse_server_timing

logger = logging.getLogger(__name__)


class RequestExecutor:
    """Async context-manager issuing one instrumented HTTP exchange per call."""

    def __init__(
        self,
        hostname: str = DEFAULT_HOSTNAME,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        timing_metric: str = SERVER_TIMING_METRIC,
    ) -> None:
        self.base_url = (base_url or f"https://{hostname}").rstrip("/")
        self.timeout = timeout  # None: no deadline, a hung request blocks the run
        self.timing_metric = timing_metric
        self._secure = self.base_url.startswith("https://")
        self._session: Optional[aiohttp.ClientSession] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> RequestExecutor:
        trace = aiohttp.TraceConfig()
        trace.on_dns_resolvehost_end.append(self._on_dns_resolved)
        trace.on_connection_create_end.append(self._on_connection_created)

        connector = aiohttp.TCPConnector(
            force_close=True,
            use_dns_cache=False,
            limit=1,
        )
        self._session = aiohttp.ClientSession(
            headers=COMMON_HEADERS,
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            trace_configs=[trace],
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "RequestExecutor must be used as an async context manager "
                "(async with RequestExecutor() as executor: ...)"
            )
        return self._session

    # -- Trace callbacks ----------------------------------------------------

    @staticmethod
    def _recorder(trace_config_ctx: Any) -> Optional[PhaseRecorder]:
        recorder = getattr(trace_config_ctx, "trace_request_ctx", None)
        if isinstance(recorder, PhaseRecorder) and not recorder.done:
            return recorder
        return None

    async def _on_dns_resolved(self, session, trace_config_ctx, params) -> None:  # noqa: ANN001
        recorder = self._recorder(trace_config_ctx)
        if recorder and not recorder.has("dns_resolved"):
            recorder.mark("dns_resolved")

    async def _on_connection_created(self, session, trace_config_ctx, params) -> None:  # noqa: ANN001
        # aiohttp reports one event for TCP connect + TLS handshake; on https
        # it marks the handshake, on plain http the bare connect.
        recorder = self._recorder(trace_config_ctx)
        if recorder is None:
            return
        phase = "tls_handshaked" if self._secure else "tcp_connected"
        if not recorder.has(phase):
            recorder.mark(phase)

    # -- Public methods -----------------------------------------------------

    async def download(self, num_bytes: int) -> TimingRecord:
        """GET ``num_bytes`` from the download endpoint."""
        return await self.request("GET", DOWNLOAD_PATH, params={"bytes": str(num_bytes)})

    async def upload(self, num_bytes: int) -> TimingRecord:
        """POST ``num_bytes`` of filler to the upload endpoint."""
        body = UPLOAD_FILLER * num_bytes
        headers = {
            "Content-Type": "application/octet-stream",
            "Content-Length": str(len(body)),
        }
        return await self.request("POST", UPLOAD_PATH, data=body, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TimingRecord:
        """Perform exactly one exchange and return its ``TimingRecord``.

        The response status is recorded but not validated.  Any transport
        failure, timeout, or unusable ``server-timing`` header raises
        ``NetworkError``.
        """
        session = self._ensure_session()
        url = f"{self.base_url}{path}"
        recorder = PhaseRecorder()
        received = 0

        try:
            recorder.mark("start")
            async with session.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                trace_request_ctx=recorder,
            ) as resp:
                recorder.mark("first_byte")
                async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                    received += len(chunk)
                recorder.mark("end")
                status = resp.status
                timing_header = resp.headers.get(SERVER_TIMING_HEADER)
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"{method} {url} timed out after {self.timeout} s") from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

        if not 200 <= status < 300:
            logger.debug("%s %s returned HTTP %d; keeping timing data", method, url, status)

        server_ms = parse_server_timing(timing_header, self.timing_metric)
        return recorder.finish(server_ms, status=status, bytes_received=received)
