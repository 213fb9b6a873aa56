from __future__ import annotations

import json

import httpx
import pytest

from pubcid.adapters.sharedid_client import SHAREDID_URL, SharedIdClient
from pubcid.storage import CookieJar


class FakeRemote:
    """SharedId + pixel endpoints behind httpx.MockTransport."""

    def __init__(self, body: str | None = None, status: int = 200, error: Exception | None = None) -> None:
        self.body = json.dumps({"sharedId": "abc123"}) if body is None else body
        self.status = status
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == SHAREDID_URL:
            if self.error is not None:
                raise self.error
            return httpx.Response(self.status, text=self.body)
        return httpx.Response(200, content=b"")

    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def sync_client(remote: FakeRemote) -> SharedIdClient:
    return SharedIdClient(client=remote.client())


@pytest.fixture
def jar() -> CookieJar:
    return CookieJar("a.b.example.com")
