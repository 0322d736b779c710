"""Tests for the HTTP status fetcher."""

import httpx
import pytest

from src.core.domain.exceptions import (
    DecodeError,
    ProtocolError,
    TransportError,
    URLResolutionError,
)
from src.modules.waits.infrastructure.status_fetcher import HttpStatusFetcher

pytestmark = pytest.mark.anyio

BASE_URL = "https://waits.example.com/"
FROZEN_TS = 1717236000.75


def _fetcher(handler, calls=None) -> HttpStatusFetcher:
    def _handle(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return handler(request)

    return HttpStatusFetcher(
        base_url=BASE_URL,
        timeout_sec=1.0,
        transport=httpx.MockTransport(_handle),
        clock=lambda: FROZEN_TS,
    )


def _status(current, **extra) -> dict:
    data = {
        "attraction": "Forbidden Journey",
        "current": current,
        "median": 30,
        "min": 5,
        "min_time": "09:10",
        "max": 60,
        "max_time": "14:00",
        "avg_today": 25,
        "avg_week": 28,
        "avg_month": 31,
        "updated": "today",
        "scraped_at": "2025-06-01T10:00:00.123Z",
        "source": "official",
    }
    data.update(extra)
    return data


@pytest.mark.parametrize(
    ("endpoint", "base", "expected"),
    [
        (
            "https://other.example.com/api/wait?slug=x",
            BASE_URL,
            "https://other.example.com/api/wait?slug=x",
        ),
        (
            "/api/wait?slug=hp",
            "https://waits.example.com/",
            "https://waits.example.com/api/wait?slug=hp",
        ),
        (
            "api/wait?slug=hp",
            "https://waits.example.com",
            "https://waits.example.com/api/wait?slug=hp",
        ),
        (
            "/api/wait?slug=hp",
            "https://waits.example.com",
            "https://waits.example.com/api/wait?slug=hp",
        ),
    ],
)
def test_resolve_endpoint(endpoint: str, base: str, expected: str) -> None:
    assert str(HttpStatusFetcher.resolve_endpoint(endpoint, base)) == expected


@pytest.mark.parametrize(
    "endpoint",
    ["", "   ", "ftp://files.example.com/wait", "http://"],
)
def test_resolve_endpoint_rejects_bad_values(endpoint: str) -> None:
    with pytest.raises(URLResolutionError):
        HttpStatusFetcher.resolve_endpoint(endpoint, BASE_URL)


def test_build_request_url_appends_cache_buster() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, json={}))

    url = fetcher.build_request_url("/api/wait?slug=hp")

    assert url.params["slug"] == "hp"
    assert url.params["_ts"] == "1717236000"
    assert url.host == "waits.example.com"


async def test_fetch_status_object_body(master_factory) -> None:
    calls: list[httpx.Request] = []
    fetcher = _fetcher(lambda request: httpx.Response(200, json=_status(15)), calls)

    status = await fetcher.fetch_status(master_factory("hp"))

    assert status.current == 15
    assert status.min_wait == 5
    assert status.max_wait == 60
    assert status.avg_month == 31
    assert status.scraped_at is not None
    assert status.scraped_at.microsecond == 123000
    assert calls[0].url.params["_ts"] == "1717236000"
    assert calls[0].url.path == "/api/wait"


async def test_fetch_status_array_body_uses_first_element(master_factory) -> None:
    fetcher = _fetcher(
        lambda request: httpx.Response(200, json=[_status(40), _status(99)])
    )

    status = await fetcher.fetch_status(master_factory("hp"))

    assert status.current == 40


async def test_fetch_status_timestamp_without_fraction(master_factory) -> None:
    fetcher = _fetcher(
        lambda request: httpx.Response(
            200, json=_status(10, scraped_at="2025-06-01T10:00:00Z")
        )
    )

    status = await fetcher.fetch_status(master_factory("hp"))

    assert status.scraped_at is not None
    assert status.scraped_at.second == 0


async def test_fetch_status_absent_current(master_factory) -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, json={"attraction": "x"}))

    status = await fetcher.fetch_status(master_factory("hp"))

    assert status.current is None


async def test_empty_array_is_decode_error(master_factory) -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(DecodeError):
        await fetcher.fetch_status(master_factory("hp"))


@pytest.mark.parametrize(
    "content",
    [b"<html>maintenance</html>", b'"just a string"', b'{"current": "soon"}'],
)
async def test_unexpected_body_is_decode_error(master_factory, content: bytes) -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, content=content))

    with pytest.raises(DecodeError):
        await fetcher.fetch_status(master_factory("hp"))


async def test_error_status_is_protocol_error(master_factory) -> None:
    fetcher = _fetcher(lambda request: httpx.Response(503))

    with pytest.raises(ProtocolError) as exc_info:
        await fetcher.fetch_status(master_factory("hp"))

    assert exc_info.value.status_code == 503


async def test_connection_failure_is_transport_error(master_factory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    fetcher = _fetcher(handler)

    with pytest.raises(TransportError):
        await fetcher.fetch_status(master_factory("hp"))


async def test_timeout_is_transport_error(master_factory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    fetcher = _fetcher(handler)

    with pytest.raises(TransportError):
        await fetcher.fetch_status(master_factory("hp"))


async def test_unresolvable_endpoint_raises_before_request(master_factory) -> None:
    calls: list[httpx.Request] = []
    fetcher = _fetcher(lambda request: httpx.Response(200, json={}), calls)

    with pytest.raises(URLResolutionError):
        await fetcher.fetch_status(master_factory("hp", endpoint="ftp://x/y"))

    assert calls == []
