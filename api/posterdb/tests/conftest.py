"""Shared pytest fixtures for resolver, source and route tests."""

from __future__ import annotations

from typing import Any, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from posterdb.api.deps import get_resolver
from posterdb.core.config import Settings
from posterdb.main import app
from posterdb.services.resolver import PosterResolver
from posterdb.tests.utils import FakeClock, StubSource


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("POSTERDB_API_KEY", raising=False)
    monkeypatch.delenv("POSTERDB_BACKEND", raising=False)


@pytest.fixture()
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {"request_retries": 1, "settle_delay_seconds": 0}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def stub_source() -> StubSource:
    return StubSource([[]])


@pytest.fixture()
def resolver(make_settings, stub_source: StubSource) -> PosterResolver:
    return PosterResolver(make_settings(api_key="test-key"), source=stub_source)


@pytest_asyncio.fixture()
async def client(resolver: PosterResolver) -> AsyncClient:
    app.dependency_overrides[get_resolver] = lambda: resolver
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as async_client:
        yield async_client
    app.dependency_overrides.pop(get_resolver, None)
