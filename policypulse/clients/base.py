"""Base HTTP client with shared resilience patterns.

Backend clients inherit from this class to get:
- A User-Agent header and optional API key header
- Exponential backoff with jitter on transient failures
- Retry-After handling for 429 responses
- A per-backend circuit breaker wrapping the whole retry loop
- Config-driven retry/backoff/timeout parameters (``resilience`` section)
"""

import asyncio
import logging
import os
import random

import aiohttp

from policypulse import __version__
from policypulse.clients.circuit_breaker import CircuitBreaker, CircuitOpenError  # noqa: F401

logger = logging.getLogger(__name__)

USER_AGENT = f"PolicyPulse-Exporter/{__version__} (bill impact reports)"
MAX_RETRIES = 3
BACKOFF_BASE = 2  # seconds


class BaseClient:
    """Retrying JSON client for one backend.

    Args:
        source_name: Identifier used in logs and as the breaker name.
        config: Optional config dict. Reads ``resilience`` for retry and
            breaker parameters and ``api.key_env_var`` for the API key.
        sleep: Awaitable sleep used between retries; injectable for tests.
    """

    def __init__(self, source_name: str, config: dict | None = None, sleep=None):
        self.source_name = source_name
        self._sleep = sleep or asyncio.sleep
        config = config or {}

        self._headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        key_env_var = config.get("api", {}).get("key_env_var")
        api_key = os.environ.get(key_env_var) if key_env_var else None
        if api_key:
            self._headers["Authorization"] = f"Token {api_key}"

        resilience = config.get("resilience", {})
        self.max_retries = resilience.get("max_retries", MAX_RETRIES)
        self.backoff_base = resilience.get("backoff_base", BACKOFF_BASE)
        self.backoff_max = resilience.get("backoff_max", 60)
        self.request_timeout = aiohttp.ClientTimeout(total=resilience.get("request_timeout", 10))

        breaker = resilience.get("circuit_breaker", {})
        self._circuit_breaker = CircuitBreaker(
            name=source_name,
            failure_threshold=breaker.get("failure_threshold", 5),
            recovery_timeout=breaker.get("recovery_timeout", 60),
        )

    def _create_session(self) -> aiohttp.ClientSession:
        """Create an aiohttp session carrying the client headers."""
        return aiohttp.ClientSession(headers=self._headers, timeout=self.request_timeout)

    async def _get_json(self, session: aiohttp.ClientSession, url: str, **kwargs) -> dict | list | None:
        """GET ``url`` and decode JSON, retrying transient failures.

        A 404 is an answer, not a failure: it returns None without retrying.
        The circuit breaker is checked once on entry and told the final
        outcome of the retry loop.

        Raises:
            CircuitOpenError: The breaker is OPEN.
            aiohttp.ClientError | asyncio.TimeoutError: All retries failed.
        """
        self._circuit_breaker.check()

        last_error: BaseException | None = None
        attempt = 0
        rate_limit_hits = 0
        while attempt < self.max_retries:
            try:
                async with session.get(url, **kwargs) as resp:
                    if resp.status == 404:
                        self._circuit_breaker.record_success()
                        logger.debug("%s: 404 for %s", self.source_name, url)
                        return None
                    if resp.status == 429:
                        rate_limit_hits += 1
                        if rate_limit_hits > self.max_retries:
                            last_error = aiohttp.ClientResponseError(
                                resp.request_info, resp.history, status=429,
                            )
                            logger.error("%s: too many 429 responses (%d), giving up",
                                         self.source_name, rate_limit_hits)
                            break
                        delay = self._retry_after(resp.headers.get("Retry-After"), attempt)
                        logger.warning("%s: 429 rate limited, waiting %ds", self.source_name, delay)
                        await self._sleep(delay)
                        continue  # server-requested delay does not use up an attempt
                    resp.raise_for_status()
                    result = await resp.json()
                    self._circuit_breaker.record_success()
                    return result
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning("%s: request failed (attempt %d/%d): %s",
                               self.source_name, attempt + 1, self.max_retries, e)

            attempt += 1
            if attempt < self.max_retries:
                backoff = min(self.backoff_base ** attempt, self.backoff_max) + random.uniform(0, 1)
                logger.info("%s: retrying in %.1fs...", self.source_name, backoff)
                await self._sleep(backoff)

        self._circuit_breaker.record_failure()
        logger.error("%s: all %d attempts failed, last error: %s",
                     self.source_name, self.max_retries, last_error)
        raise last_error or aiohttp.ClientError(
            f"{self.source_name}: request failed after {self.max_retries} attempts"
        )

    def _retry_after(self, raw: str | None, attempt: int) -> int:
        try:
            return max(0, min(int(raw), self.backoff_max))
        except (ValueError, TypeError):
            return min(self.backoff_base ** (attempt + 2), self.backoff_max)
