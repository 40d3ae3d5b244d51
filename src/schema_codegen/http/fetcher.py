"""HTTP client with retries and timeout for timestamp probes and artifact downloads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC
from email.utils import parsedate_to_datetime
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_USER_AGENT = "schema-codegen/1.0"


@dataclass(slots=True)
class FetchResult:
    """Result of an HTTP download."""

    url: str
    status_code: int
    is_success: bool
    path: Path | None = None
    error: str | None = None


class HttpFetcher:
    """HTTP client wrapper with retry, timeout, and user-agent configuration."""

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout_seconds, connect=10.0)
        self._client = httpx.Client(
            timeout=self._timeout,
            headers={"User-Agent": user_agent},
            transport=transport or httpx.HTTPTransport(retries=max_retries),
            follow_redirects=True,
        )

    def last_modified(self, url: str) -> float | None:
        """Remote timestamp from ``Last-Modified`` (or ``Date``); None when unavailable."""

        try:
            response = self._client.head(url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("Timestamp probe failed for %s: %s", url, exc)
            return None
        if not response.is_success:
            logger.warning("Timestamp probe for %s returned HTTP %s", url, response.status_code)
            return None

        header = response.headers.get("last-modified") or response.headers.get("date")
        if not header:
            return None
        try:
            parsed = parsedate_to_datetime(header)
        except (TypeError, ValueError):
            logger.warning("Unparsable timestamp header for %s: %r", url, header)
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.timestamp()

    def download(self, url: str, destination: Path) -> FetchResult:
        """Stream ``url`` into ``destination``; partial files are removed on failure."""

        destination.parent.mkdir(parents=True, exist_ok=True)
        partial = destination.with_name(destination.name + ".part")
        try:
            with self._client.stream("GET", url) as response:
                if not response.is_success:
                    return FetchResult(
                        url=url,
                        status_code=response.status_code,
                        is_success=False,
                        error=f"HTTP {response.status_code}",
                    )
                with partial.open("wb") as handle:
                    for chunk in response.iter_bytes():
                        handle.write(chunk)
                status_code = response.status_code
        except httpx.TimeoutException:
            logger.warning("Timeout fetching %s", url)
            partial.unlink(missing_ok=True)
            return FetchResult(url=url, status_code=0, is_success=False, error="timeout")
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("HTTP error fetching %s: %s", url, exc)
            partial.unlink(missing_ok=True)
            return FetchResult(url=url, status_code=0, is_success=False, error=str(exc))

        partial.replace(destination)
        return FetchResult(url=url, status_code=status_code, is_success=True, path=destination)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
