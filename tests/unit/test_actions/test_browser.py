"""Tests for the HttpBrowserBackend and the browser actions."""

from __future__ import annotations

import json

import httpx
import pytest

from actionloop.actions.base import ActionRegistry
from actionloop.actions.browser import (
    BrowserBackendError,
    HttpBrowserBackend,
    register_browser_actions,
)
from actionloop.actions.dispatcher import ActionDispatcher
from actionloop.domain.models import ActionFailureKind, ActionRequest


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def transport(requests_seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        if request.url.path == "/health":
            return httpx.Response(200, json={"status": "ok"})
        if request.url.path == "/click":
            return httpx.Response(500, json={"detail": "no element"})
        return httpx.Response(200, json={"ok": True, "path": request.url.path})

    return httpx.MockTransport(handler)


class TestHttpBrowserBackend:
    def test_init_strips_trailing_slash(self) -> None:
        backend = HttpBrowserBackend(base_url="http://browser:9222/")
        assert backend._base_url == "http://browser:9222"
        assert backend._timeout == 30.0

    @pytest.mark.asyncio
    async def test_posts_carry_session_id(self, transport, requests_seen) -> None:
        async with HttpBrowserBackend(session_id="sess-1", transport=transport) as backend:
            data = await backend.navigate("https://example.test")

        assert data == {"ok": True, "path": "/navigate"}
        body = json.loads(requests_seen[-1].content)
        assert body == {"url": "https://example.test", "session_id": "sess-1"}

    @pytest.mark.asyncio
    async def test_http_error_wrapped(self, transport) -> None:
        async with HttpBrowserBackend(transport=transport) as backend:
            with pytest.raises(BrowserBackendError, match="/click"):
                await backend.click(1, 2)

    @pytest.mark.asyncio
    async def test_not_connected(self) -> None:
        backend = HttpBrowserBackend()
        with pytest.raises(BrowserBackendError, match="Not connected"):
            await backend.screenshot()

    @pytest.mark.asyncio
    async def test_connect_fails_on_unhealthy_endpoint(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        backend = HttpBrowserBackend(transport=transport)
        with pytest.raises(BrowserBackendError, match="Failed to connect"):
            await backend.connect()
        assert backend._client is None


class TestBrowserActions:
    def test_registers_browser_actions(self) -> None:
        registry = register_browser_actions(ActionRegistry(), HttpBrowserBackend())
        assert registry.names() == ["navigate", "click", "type", "screenshot", "wait"]
        assert registry.get("click").input_schema["properties"]["button"]["default"] == "left"

    @pytest.mark.asyncio
    async def test_dispatch_through_backend(self, transport) -> None:
        async with HttpBrowserBackend(session_id="s", transport=transport) as backend:
            registry = register_browser_actions(ActionRegistry(), backend)
            results = await ActionDispatcher(registry).execute(
                [
                    ActionRequest(id="1", action_name="navigate", arguments={"url": "https://example.test"}),
                    ActionRequest(id="2", action_name="click", arguments={"x": 640, "y": 175}),
                    ActionRequest(id="3", action_name="type", arguments={"text": "standard_user"}),
                    ActionRequest(id="4", action_name="click", arguments={"x": -1, "y": 0}),
                ]
            )

        assert results[0].ok
        assert results[1].error.kind == ActionFailureKind.EXECUTION_FAILURE
        assert "BrowserBackendError" in results[1].error.message
        assert results[2].output["path"] == "/type"
        assert results[3].error.kind == ActionFailureKind.INVALID_ARGUMENTS
