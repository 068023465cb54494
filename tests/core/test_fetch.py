from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from wireslacker.core.errors import ConfigError, FetchError
from wireslacker.core.fetch import FileFetcher, HttpFetcher, SchemeFetcher, check_target, redact_url


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_http_fetch_returns_text() -> None:
    async with _client(lambda request: httpx.Response(200, text="<title>LOG</title>")) as client:
        fetcher = HttpFetcher(timeout=5, client=client)
        assert await fetcher.fetch("http://wires.test/log") == "<title>LOG</title>"


@pytest.mark.asyncio
async def test_http_error_status_raises_fetch_error_without_credentials() -> None:
    async with _client(lambda request: httpx.Response(503)) as client:
        fetcher = HttpFetcher(timeout=5, client=client)
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch("http://wires.test/log?key=s3cret")

    assert "HTTP 503" in str(excinfo.value)
    assert "s3cret" not in str(excinfo.value)


@pytest.mark.asyncio
async def test_timeout_raises_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as client:
        fetcher = HttpFetcher(timeout=0.1, client=client)
        with pytest.raises(FetchError, match="timed out"):
            await fetcher.fetch("http://wires.test/log")


@pytest.mark.asyncio
async def test_file_fetch(tmp_path: Path) -> None:
    path = tmp_path / "log.html"
    path.write_text("2023/01/01 10:00:00  hello", encoding="utf-8")

    assert await FileFetcher().fetch(path.as_uri()) == "2023/01/01 10:00:00  hello"
    assert await FileFetcher().fetch(str(path)) == "2023/01/01 10:00:00  hello"


@pytest.mark.asyncio
async def test_missing_file_raises_fetch_error(tmp_path: Path) -> None:
    with pytest.raises(FetchError):
        await FileFetcher().fetch(str(tmp_path / "missing.html"))


@pytest.mark.asyncio
async def test_scheme_fetcher_dispatches(tmp_path: Path) -> None:
    path = tmp_path / "log.html"
    path.write_text("local", encoding="utf-8")

    async with _client(lambda request: httpx.Response(200, text="remote")) as client:
        fetcher = SchemeFetcher(timeout=5, client=client)
        assert await fetcher.fetch("https://wires.test/log") == "remote"
        assert await fetcher.fetch(path.as_uri()) == "local"
        with pytest.raises(FetchError, match="unsupported scheme"):
            await fetcher.fetch("ftp://wires.test/log")


def test_check_target_rejects_unknown_scheme() -> None:
    check_target("http://wires.test/log")
    check_target("https://wires.test/log")
    check_target("file:///tmp/log.html")
    with pytest.raises(ConfigError, match="no reader"):
        check_target("ftp://wires.test/log")


def test_redact_url() -> None:
    assert redact_url("http://user:pw@wires.test:8080/log?key=s3cret") == "http://wires.test:8080/log"
    assert redact_url("/tmp/log.html") == "/tmp/log.html"


@pytest.mark.asyncio
async def test_malformed_http_url_raises_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("malformed URL must not reach the transport")

    async with _client(handler) as client:
        fetcher = SchemeFetcher(timeout=5, client=client)
        with pytest.raises(FetchError):
            await fetcher.fetch("http://wires.test:abc/log")
        with pytest.raises(FetchError):
            await fetcher.fetch("http://[::1/log")


@pytest.mark.parametrize("url", ["http://[::1/log", "http://wires.test:abc/log"])
def test_check_target_rejects_malformed_url(url: str) -> None:
    with pytest.raises(ConfigError, match="invalid URL"):
        check_target(url)


def test_redact_url_tolerates_malformed_netloc() -> None:
    assert redact_url("http://[::1/log?key=s3cret") == "http://<invalid>"
