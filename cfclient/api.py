"""
Cloudflare metadata client.

Fetches the server-location directory and the client trace.  All HTTP
work goes through a single ``aiohttp.ClientSession`` managed via the
async-context-manager protocol (``async with SpeedtestAPI() as api: ...``).
Both lookups are required for the report header, so every failure here
is raised rather than swallowed.
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp

from .constants import COMMON_HEADERS, DEFAULT_HOSTNAME, LOCATIONS_PATH, TRACE_PATH
from .errors import NetworkError, ParseError


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass
class ClientTrace:
    """Client details reported by ``/cdn-cgi/trace``."""

    ip: str
    loc: str
    colo: str
    fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_fields(cls, fields: Dict[str, str]) -> ClientTrace:
        missing = [k for k in ("ip", "loc", "colo") if not fields.get(k)]
        if missing:
            raise ParseError(f"trace response is missing {', '.join(missing)}")
        return cls(ip=fields["ip"], loc=fields["loc"], colo=fields["colo"], fields=dict(fields))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "loc": self.loc,
            "colo": self.colo,
        }


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def parse_trace(text: str) -> Dict[str, str]:
    """Parse newline-separated ``key=value`` lines; lines without ``=`` are skipped."""
    fields: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        fields[key.strip()] = value.strip()
    return fields


def parse_locations(text: str) -> Dict[str, str]:
    """Map IATA code -> city from the ``/locations`` JSON array."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"locations response is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise ParseError("locations response is not a JSON array")

    locations: Dict[str, str] = {}
    for entry in data:
        if not isinstance(entry, dict) or "iata" not in entry or "city" not in entry:
            raise ParseError(f"malformed location entry: {entry!r}")
        locations[str(entry["iata"])] = str(entry["city"])
    return locations


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

class SpeedtestAPI:
    """Async context-manager wrapping the speed.cloudflare.com metadata endpoints."""

    def __init__(
        self,
        hostname: str = DEFAULT_HOSTNAME,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or f"https://{hostname}").rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self.locations: Dict[str, str] = {}
        self.client_trace: Optional[ClientTrace] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> SpeedtestAPI:
        self._session = aiohttp.ClientSession(
            headers=COMMON_HEADERS,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "SpeedtestAPI must be used as an async context manager "
                "(async with SpeedtestAPI() as api: ...)"
            )
        return self._session

    async def _get_text(self, path: str) -> str:
        session = self._ensure_session()
        url = f"{self.base_url}{path}"
        try:
            async with session.get(url) as resp:
                resp.raise_for_status()
                return await resp.text()
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"GET {url} timed out") from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise NetworkError(f"GET {url} failed: {exc}") from exc

    # -- Public methods -----------------------------------------------------

    async def fetch_server_locations(self) -> Dict[str, str]:
        """Return the IATA code -> city directory."""
        self.locations = parse_locations(await self._get_text(LOCATIONS_PATH))
        return self.locations

    async def fetch_client_trace(self) -> ClientTrace:
        """Return the client's IP, region and serving colo."""
        self.client_trace = ClientTrace.from_fields(parse_trace(await self._get_text(TRACE_PATH)))
        return self.client_trace


def city_for(locations: Dict[str, str], colo: str) -> str:
    """City name for *colo*, falling back to the code itself."""
    return locations.get(colo, colo)
