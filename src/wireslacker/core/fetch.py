"""Fetch raw documents from targets.

The URL scheme selects the strategy: ``http``/``https`` go through httpx,
``file`` URLs and bare paths are read with aiofiles.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote, urlparse

import aiofiles
import httpx

from .errors import ConfigError, FetchError

logger = logging.getLogger(__name__)

HTTP_SCHEMES = frozenset({"http", "https"})
FILE_SCHEMES = frozenset({"", "file"})
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "replace"


class Fetcher(Protocol):
    """Fetch interface: return the document behind ``url`` as text."""

    async def fetch(self, url: str) -> str:
        """Fetch a document or raise FetchError."""
        ...


def _scheme(url: str) -> str:
    return urlparse(url).scheme.lower()


def check_target(url: str) -> None:
    """Raise ConfigError when ``url`` is malformed or no fetch strategy handles it."""
    try:
        scheme = _scheme(url)
        if scheme in HTTP_SCHEMES:
            httpx.URL(url)
    except (ValueError, httpx.InvalidURL) as exc:
        raise ConfigError(f"invalid URL {redact_url(url)!r}: {exc}") from exc
    if scheme in HTTP_SCHEMES or scheme in FILE_SCHEMES:
        return
    raise ConfigError(f"no reader for {url!r} implemented, provide an alternative target")


def redact_url(url: str) -> str:
    """Drop query string and userinfo, where target credentials live."""
    try:
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme.lower() == "file":
            return url
        host = parsed.hostname or ""
        if parsed.port:
            host = f"{host}:{parsed.port}"
    except ValueError:
        # Malformed netloc; keep only the scheme.
        scheme = url.partition(":")[0]
        return f"{scheme}://<invalid>"
    return f"{parsed.scheme}://{host}{parsed.path}"


def _local_path(url: str) -> Path:
    parsed = urlparse(url)
    if parsed.scheme.lower() == "file":
        return Path(unquote(parsed.path))
    return Path(url)


class HttpFetcher:
    """GET a URL with a fixed timeout."""

    def __init__(self, *, timeout: float, client: httpx.AsyncClient | None = None) -> None:
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def fetch(self, url: str) -> str:
        if self._client is None:
            self._client = httpx.AsyncClient()
        try:
            response = await self._client.get(url, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(redact_url(url), f"HTTP {exc.response.status_code}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(redact_url(url), str(exc) or type(exc).__name__) from exc
        text = response.text
        logger.debug("Read %d bytes from %r", len(text), redact_url(url))
        return text

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


class FileFetcher:
    """Read a local file, for offline targets and directory snapshots."""

    async def fetch(self, url: str) -> str:
        path = _local_path(url)
        try:
            async with aiofiles.open(path, encoding=TEXT_ENCODING, errors=TEXT_ERRORS) as f:
                text = await f.read()
        except OSError as exc:
            raise FetchError(redact_url(url), str(exc)) from exc
        logger.debug("Read %d bytes from %r", len(text), redact_url(url))
        return text


class SchemeFetcher:
    """Dispatch to the HTTP or file fetcher based on the URL scheme."""

    def __init__(self, *, timeout: float, client: httpx.AsyncClient | None = None) -> None:
        self._http = HttpFetcher(timeout=timeout, client=client)
        self._file = FileFetcher()

    async def fetch(self, url: str) -> str:
        try:
            scheme = _scheme(url)
        except ValueError as exc:
            raise FetchError(redact_url(url), str(exc)) from exc
        if scheme in HTTP_SCHEMES:
            return await self._http.fetch(url)
        if scheme in FILE_SCHEMES:
            return await self._file.fetch(url)
        raise FetchError(redact_url(url), f"unsupported scheme {scheme!r}")

    async def aclose(self) -> None:
        await self._http.aclose()
