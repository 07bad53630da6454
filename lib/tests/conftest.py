from __future__ import annotations

import httpx
import pytest

from storefront_client import create_client


class Recorder:
    """MockTransport handler that keeps every request it saw."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []
        self._handler = handler

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
async def make_client():
    created = []

    def _make(handler, override=None):
        recorder = Recorder(handler)
        client = create_client(override, transport=httpx.MockTransport(recorder))
        created.append(client)
        return client, recorder

    yield _make
    for client in created:
        await client.aclose()
