"""REST source for the legislation tracker backend.

Endpoints:
  GET {base_url}/legislation/{id}/           -> bill record
  GET {base_url}/legislation/{id}/analysis/  -> {"analyses": [...]} (newest first)
"""

import asyncio
import logging
from urllib.parse import quote

import aiohttp

from policypulse.clients.base import BaseClient
from policypulse.clients.circuit_breaker import CircuitOpenError
from policypulse.errors import SourceUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"


def unwrap_analysis(payload) -> dict | None:
    """Pick the analysis record out of an analysis endpoint payload.

    Accepts the ``{"analyses": [...]}`` envelope (first entry wins), a bare
    list of analyses, or a bare analysis object. Null entries are skipped.
    """
    if isinstance(payload, dict) and "analyses" in payload:
        payload = payload["analyses"]
    if isinstance(payload, list):
        for entry in payload:
            if isinstance(entry, dict):
                return entry
        return None
    return payload if isinstance(payload, dict) else None


class ApiAnalysisSource(BaseClient):
    """Fetches bills and analyses over HTTP with retry and circuit breaking.

    Pass an existing ``session`` to share one connection pool; otherwise a
    session is created lazily and closed by ``close()``.
    """

    name = "legislation_api"

    def __init__(self, config: dict | None = None, session: aiohttp.ClientSession | None = None,
                 sleep=None):
        super().__init__(self.name, config, sleep=sleep)
        api = (config or {}).get("api", {})
        self.base_url = (api.get("base_url") or DEFAULT_BASE_URL).rstrip("/")
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ApiAnalysisSource":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _url(self, bill_id: str, suffix: str = "") -> str:
        return f"{self.base_url}/legislation/{quote(str(bill_id), safe='')}/{suffix}"

    async def fetch_bill(self, bill_id: str) -> dict | None:
        payload = await self._fetch(self._url(bill_id))
        return payload if isinstance(payload, dict) else None

    async def fetch_analysis(self, bill_id: str) -> dict | None:
        payload = await self._fetch(self._url(bill_id, "analysis/"))
        analysis = unwrap_analysis(payload)
        if analysis is None:
            logger.info("%s: no analysis available for bill %s", self.name, bill_id)
        return analysis

    async def _fetch(self, url: str):
        if self._session is None:
            self._session = self._create_session()
        try:
            return await self._get_json(self._session, url)
        except CircuitOpenError as e:
            logger.warning("%s: %s", self.name, e)
            raise SourceUnavailableError(self.name, "circuit open") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SourceUnavailableError(self.name, str(e) or type(e).__name__) from e
