"""Shared fixtures: an ASGI test client and a fake upstream origin."""

import logging
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from linkmeta.api.v1.unfurl import get_transport
from linkmeta.main import app

Handler = Callable[[httpx.Request], httpx.Response]


class FakeOrigin:
    """Routes outbound requests to canned responses keyed by full URL.

    Unknown URLs answer 404. Every request that reaches the origin is
    recorded, so tests can assert that nothing was fetched.
    """

    def __init__(self):
        self.routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, handler: Handler | httpx.Response) -> None:
        if isinstance(handler, httpx.Response):
            response = handler
            self.routes[url] = lambda request: response
        else:
            self.routes[url] = handler

    def html(self, url: str, body: str, status: int = 200, headers: dict | None = None) -> None:
        self.add(url, lambda request: httpx.Response(status, html=body, headers=headers))

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            return httpx.Response(404, text="not found")
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def restore_logging():
    """Undo configure_logging() calls made by a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def origin() -> FakeOrigin:
    fake = FakeOrigin()
    app.dependency_overrides[get_transport] = lambda: fake.transport
    yield fake
    app.dependency_overrides.pop(get_transport, None)


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
