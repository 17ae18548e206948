"""API source tests for URL building, auth headers, retries and error mapping."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest
from tenacity import wait_none

import posterdb.sources.http as http_module
from posterdb.sources.api import ApiPosterSource
from posterdb.sources.base import LookupKey, LookupKind
from posterdb.sources.errors import FetchCancelledError, HttpStatusError, ParseError, TransportError

BASE_URL = "https://theposterdb.com"
PAYLOAD = {"data": [{"id": "1", "title": "Inception", "url": "https://cdn.example/1.jpg", "width": 1000, "height": 1500}]}


class DummyAsyncClient:
    """Replays queued responses (or raises queued errors) for each GET."""

    outcomes: list[Any] = []
    requests: list[dict[str, Any]] = []

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.timeout = kwargs.get("timeout")

    async def __aenter__(self) -> "DummyAsyncClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def get(self, url: str, headers: dict | None = None, params: dict | None = None) -> httpx.Response:
        DummyAsyncClient.requests.append({"url": url, "headers": headers or {}, "timeout": self.timeout})
        outcome = DummyAsyncClient.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        status, body = outcome
        return httpx.Response(status, text=body, request=httpx.Request("GET", url))


@pytest.fixture()
def dummy_client(monkeypatch: pytest.MonkeyPatch) -> type[DummyAsyncClient]:
    DummyAsyncClient.outcomes = []
    DummyAsyncClient.requests = []
    monkeypatch.setattr(http_module.httpx, "AsyncClient", DummyAsyncClient)
    monkeypatch.setattr(http_module, "RETRY_WAIT", wait_none())
    return DummyAsyncClient


def test_build_url_for_title_and_external_ids() -> None:
    source = ApiPosterSource(base_url=BASE_URL + "/")

    assert source.build_url(LookupKey.for_title("Inception (2010)")) == (
        "https://theposterdb.com/api/search?query=Inception%20%282010%29"
    )
    assert source.build_url(LookupKey(LookupKind.TMDB, "27205")) == "https://theposterdb.com/api/posters/tmdb/27205"
    assert source.build_url(LookupKey(LookupKind.IMDB, "tt1375666")) == (
        "https://theposterdb.com/api/posters/imdb/tt1375666"
    )


def test_headers_prefer_per_call_key() -> None:
    source = ApiPosterSource(api_key="configured")

    assert source._headers(None)["X-API-Key"] == "configured"
    assert source._headers("override")["X-API-Key"] == "override"
    assert "X-API-Key" not in ApiPosterSource()._headers(None)
    assert source._headers(None)["accept"] == "application/json"


@pytest.mark.asyncio
async def test_lookup_parses_candidates(dummy_client) -> None:
    dummy_client.outcomes = [(200, json.dumps(PAYLOAD))]
    source = ApiPosterSource(base_url=BASE_URL, api_key="k-1", timeout=7.5)

    candidates = await source.lookup(LookupKey(LookupKind.TMDB, "27205"))

    assert [c.id for c in candidates] == ["1"]
    (request,) = dummy_client.requests
    assert request["url"] == "https://theposterdb.com/api/posters/tmdb/27205"
    assert request["headers"]["X-API-Key"] == "k-1"
    assert request["timeout"] == 7.5


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(dummy_client) -> None:
    dummy_client.outcomes = [(404, "not found")]
    source = ApiPosterSource(attempts=3)

    with pytest.raises(HttpStatusError) as excinfo:
        await source.lookup(LookupKey(LookupKind.TMDB, "0"))

    assert excinfo.value.status_code == 404
    assert str(excinfo.value) == "API returned 404"
    assert len(dummy_client.requests) == 1


@pytest.mark.asyncio
async def test_server_errors_are_retried(dummy_client) -> None:
    dummy_client.outcomes = [(503, "busy"), (200, json.dumps(PAYLOAD))]
    source = ApiPosterSource(attempts=3)

    candidates = await source.lookup(LookupKey.for_title("Inception"))

    assert len(candidates) == 1
    assert len(dummy_client.requests) == 2


@pytest.mark.asyncio
async def test_persistent_server_errors_surface_status(dummy_client) -> None:
    dummy_client.outcomes = [(500, "oops"), (500, "oops")]
    source = ApiPosterSource(attempts=2)

    with pytest.raises(HttpStatusError) as excinfo:
        await source.lookup(LookupKey.for_title("Inception"))

    assert excinfo.value.status_code == 500
    assert len(dummy_client.requests) == 2


@pytest.mark.asyncio
async def test_transport_failures_become_transport_errors(dummy_client) -> None:
    dummy_client.outcomes = [httpx.ConnectError("dns failure")] * 3
    source = ApiPosterSource(attempts=3)

    with pytest.raises(TransportError, match="dns failure"):
        await source.lookup(LookupKey.for_title("Inception"))

    assert len(dummy_client.requests) == 3


@pytest.mark.asyncio
async def test_undecodable_body_is_a_parse_error(dummy_client) -> None:
    dummy_client.outcomes = [(200, "<html>maintenance</html>")]

    with pytest.raises(ParseError):
        await ApiPosterSource().lookup(LookupKey.for_title("Inception"))


@pytest.mark.asyncio
async def test_missing_data_array_is_empty(dummy_client) -> None:
    dummy_client.outcomes = [(200, "{}")]

    assert await ApiPosterSource().lookup(LookupKey.for_title("Nothing")) == []


@pytest.mark.asyncio
async def test_preset_cancel_skips_the_request(dummy_client) -> None:
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(FetchCancelledError):
        await ApiPosterSource().lookup(LookupKey.for_title("Inception"), cancel=cancel)

    assert dummy_client.requests == []
