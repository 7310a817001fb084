"""HTTP browser-control backend and its actions.

Sends browser actions (navigate, click, type, screenshot, wait) as HTTP
requests to a browser-control endpoint. Every request carries the run's
session id so the endpoint can keep one browser context per session.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field

from actionloop.actions.base import ActionError, ActionRegistry

logger = logging.getLogger(__name__)


class HttpBrowserBackend:
    """Client for a browser-control endpoint.

    Example usage::

        async with HttpBrowserBackend("http://localhost:9222", session_id="s1") as browser:
            await browser.navigate("https://example.test")
            await browser.click(640, 175)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:9222",
        timeout: float = 30.0,
        session_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session_id = session_id
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def session_id(self) -> str | None:
        return self._session_id

    async def connect(self) -> None:
        """Create the HTTP client and verify endpoint connectivity."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            resp = await self._client.get("/health")
            resp.raise_for_status()
            logger.info("Connected to browser endpoint at %s", self._base_url)
        except Exception as e:
            await self._client.aclose()
            self._client = None
            raise BrowserBackendError(f"Failed to connect to browser endpoint: {e}") from e

    async def disconnect(self) -> None:
        """Close the HTTP client. Safe to call more than once."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from browser endpoint")

    async def navigate(self, url: str) -> dict[str, Any]:
        data = await self._post("/navigate", {"url": url})
        logger.debug("Navigated to %s", url)
        return data

    async def click(self, x: int, y: int, button: str = "left") -> dict[str, Any]:
        data = await self._post("/click", {"x": x, "y": y, "button": button})
        logger.debug("Clicked %s at (%d, %d)", button, x, y)
        return data

    async def type_text(self, text: str) -> dict[str, Any]:
        data = await self._post("/type", {"text": text})
        logger.debug("Typed text: %s", text[:50])
        return data

    async def screenshot(self) -> dict[str, Any]:
        return await self._post("/screenshot", {})

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send a POST request to the endpoint and return its JSON body."""
        if self._client is None:
            raise BrowserBackendError("Not connected to browser endpoint", action=path.lstrip("/"))
        if self._session_id is not None:
            payload = {**payload, "session_id": self._session_id}
        try:
            resp = await self._client.post(path, json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise BrowserBackendError(
                f"HTTP request to {path} failed: {e}", action=path.lstrip("/")
            ) from e
        if not resp.content:
            return {}
        return resp.json()

    async def __aenter__(self) -> HttpBrowserBackend:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


class BrowserBackendError(ActionError):
    """Raised when the browser endpoint cannot carry out an action."""


# ---------------------------------------------------------------------------
# Action argument models
# ---------------------------------------------------------------------------


class NavigateArgs(BaseModel):
    url: str = Field(description="Absolute URL to open")


class ClickArgs(BaseModel):
    x: int = Field(ge=0, description="Horizontal page coordinate in pixels")
    y: int = Field(ge=0, description="Vertical page coordinate in pixels")
    button: Literal["left", "right", "middle"] = Field(default="left")


class TypeArgs(BaseModel):
    text: str = Field(description="Text to type into the focused element")


class WaitArgs(BaseModel):
    seconds: float = Field(gt=0, le=60, description="How long to pause")


def register_browser_actions(registry: ActionRegistry, backend: HttpBrowserBackend) -> ActionRegistry:
    """Register the browser actions backed by ``backend`` on ``registry``."""

    async def navigate(args: NavigateArgs) -> dict[str, Any]:
        return await backend.navigate(args.url)

    async def click(args: ClickArgs) -> dict[str, Any]:
        return await backend.click(args.x, args.y, args.button)

    async def type_(args: TypeArgs) -> dict[str, Any]:
        return await backend.type_text(args.text)

    async def screenshot(args: dict[str, Any]) -> dict[str, Any]:
        return await backend.screenshot()

    async def wait(args: WaitArgs) -> str:
        await asyncio.sleep(args.seconds)
        return f"waited {args.seconds}s"

    registry.register("navigate", navigate, "Open a URL in the browser.", args_model=NavigateArgs)
    registry.register("click", click, "Click at page coordinates.", args_model=ClickArgs)
    registry.register("type", type_, "Type text into the focused element.", args_model=TypeArgs)
    registry.register("screenshot", screenshot, "Capture the current page.")
    registry.register("wait", wait, "Pause, e.g. while a page loads.", args_model=WaitArgs)
    return registry
