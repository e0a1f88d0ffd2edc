"""Upstream text fetching: plain GET with custom headers and manual redirects.

Adapters depend on the ``TextFetcher`` protocol, so tests can pass a fake
instead of a real client.
"""

import asyncio
import logging
from typing import Protocol, runtime_checkable
from urllib.parse import urljoin

import httpx

from rolewatch.core.config import HttpConfig

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """A retrieval failed: transport error, timeout, bad status or redirect loop."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


@runtime_checkable
class TextFetcher(Protocol):
    """Minimal fetch interface shared by every adapter."""

    async def fetch_text(self, url: str, headers: dict[str, str] | None = None) -> str: ...


class HttpFetcher:
    """httpx-backed ``TextFetcher``.

    Usage::

        async with HttpFetcher(settings.http) as fetcher:
            html = await fetcher.fetch_text(url)
    """

    def __init__(
        self,
        config: HttpConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_s),
            headers={"User-Agent": config.user_agent},
            follow_redirects=False,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_text(self, url: str, headers: dict[str, str] | None = None) -> str:
        """GET ``url`` and return the decoded body.

        Redirects are followed by hand up to ``max_redirects``; a relative
        ``Location`` is resolved against the current URL. ``timeout_s`` bounds
        the whole retrieval, redirects and body included.

        Raises:
            FetchError: on transport errors, timeouts, status >= 400, a 3xx
                without ``Location``, or too many redirects.
        """
        try:
            async with asyncio.timeout(self._config.timeout_s):
                return await self._follow(url, headers)
        except TimeoutError as e:
            raise FetchError(url, "Timeout") from e

    async def _follow(self, url: str, headers: dict[str, str] | None) -> str:
        current = url
        for _ in range(self._config.max_redirects + 1):
            try:
                response = await self._client.get(current, headers=headers)
            except httpx.TimeoutException as e:
                raise FetchError(current, "Timeout") from e
            except httpx.HTTPError as e:
                raise FetchError(current, f"{type(e).__name__}: {e}") from e

            if 300 <= response.status_code < 400:
                location = response.headers.get("location")
                if not location:
                    raise FetchError(current, f"HTTP {response.status_code} without Location")
                current = urljoin(current, location)
                logger.debug("Following redirect to %s", current)
                continue

            if response.status_code >= 400:
                raise FetchError(current, f"HTTP {response.status_code}")

            return response.text

        raise FetchError(url, f"more than {self._config.max_redirects} redirects")
