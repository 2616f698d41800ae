"""
Async REST client for the Nina indexer.

- GET JSON from {base_url}{path} with query params.
- Retry transport errors and 5xx with exponential backoff; 4xx fails fast.
- One httpx.AsyncClient per NinaApiClient, closed by close() or `async with`.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from nina_sdk.core.exceptions import NinaApiError
from nina_sdk.nina_logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_RETRY_DELAY_SEC = 30.0


class NinaApiClient:
    """
    Thin wrapper around httpx.AsyncClient for the Nina REST API.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_backoff_sec: float = 1.0,
        max_retry_delay_sec: float = DEFAULT_MAX_RETRY_DELAY_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Indexer root, e.g. https://api.ninaprotocol.com/v1.
            timeout: Per-request timeout in seconds.
            retry_attempts: Total attempts for retryable failures (>= 1).
            retry_backoff_sec: Initial delay for exponential backoff.
            max_retry_delay_sec: Cap for backoff delay.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._base_url = base_url.rstrip("/")
        self._retry_attempts = max(1, retry_attempts)
        self._retry_backoff = max(0.0, retry_backoff_sec)
        self._max_retry_delay = max_retry_delay_sec
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET path and return decoded JSON; raise NinaApiError on non-2xx."""
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        delay = self._retry_backoff
        for attempt in range(self._retry_attempts):
            try:
                resp = await self._http.get(path, params=clean)
            except httpx.TransportError as e:
                if attempt + 1 >= self._retry_attempts:
                    logger.error("api_request_give_up", path=path, attempts=attempt + 1, error=str(e))
                    raise NinaApiError(0, path, str(e)) from e
                logger.warning("api_request_retry", path=path, attempt=attempt + 1, error=str(e))
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_retry_delay)
                continue

            if resp.status_code >= 500 and attempt + 1 < self._retry_attempts:
                logger.warning("api_request_retry", path=path, attempt=attempt + 1, status_code=resp.status_code)
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_retry_delay)
                continue
            if resp.status_code >= 400:
                logger.warning("api_request_failed", path=path, status_code=resp.status_code)
                raise NinaApiError(resp.status_code, path, resp.text[:200])
            return resp.json()
        # range(retry_attempts) always returns or raises above
        raise NinaApiError(0, path, "no attempts made")

    async def get_url(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """Single GET against an absolute URL (identity service). No retry."""
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        resp = await self._http.get(url, params=clean)
        if resp.status_code >= 400:
            raise NinaApiError(resp.status_code, url, resp.text[:200])
        return resp.json()

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "NinaApiClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
