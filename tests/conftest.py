"""Shared test fixtures for the actionloop test suite.

Provides common fixtures used across unit tests: a small action
registry, scripted model clients, and sample turns.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any
from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel

from actionloop.actions.base import ActionError, ActionRegistry
from actionloop.domain.models import ActionRequest, ModelTurn, Turn
from actionloop.model.base import ModelClient


class ScriptedModelClient(ModelClient):
    """ModelClient returning pre-scripted responses, recording each call.

    Each script entry is either a ModelTurn to return or an exception to raise.
    """

    def __init__(self, script: list[ModelTurn | Exception]) -> None:
        super().__init__(model="scripted")
        self._script = list(script)
        self.calls: list[dict[str, Any]] = []

    async def infer(
        self,
        turns: Sequence[Turn],
        actions: list[dict[str, Any]],
        session_id: str | None = None,
    ) -> ModelTurn:
        self.calls.append({"turns": list(turns), "actions": actions, "session_id": session_id})
        step = self._script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


class UrlArgs(BaseModel):
    url: str


# ---------------------------------------------------------------------------
# Registry Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> ActionRegistry:
    """A registry with a validated, a raw, a failing and a slow action."""
    reg = ActionRegistry()

    async def navigate(args: UrlArgs) -> dict[str, str]:
        return {"url": args.url, "status": "loaded"}

    def echo(args: dict[str, Any]) -> dict[str, Any]:
        return args

    async def explode(args: dict[str, Any]) -> None:
        raise ActionError("element not found", action="explode")

    async def sleep(args: dict[str, Any]) -> str:
        await asyncio.sleep(args.get("seconds", 0))
        return "slept"

    reg.register("navigate", navigate, "Open a URL", args_model=UrlArgs)
    reg.register("echo", echo, "Echo arguments back")
    reg.register("explode", explode, "Always fails")
    reg.register("sleep", sleep, "Sleep", input_schema={"type": "object", "properties": {"seconds": {"type": "number"}}})
    return reg


# ---------------------------------------------------------------------------
# Turn Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def navigate_turn() -> ModelTurn:
    """A model turn requesting one navigate action."""
    return ModelTurn(
        action_requests=[
            ActionRequest(id="call_1", action_name="navigate", arguments={"url": "https://example.test"})
        ]
    )


@pytest.fixture
def done_turn() -> ModelTurn:
    """A terminal model turn."""
    return ModelTurn(text="DONE")


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scripted_model():
    """Factory for ScriptedModelClient instances."""
    return ScriptedModelClient


@pytest.fixture
def mock_model_client() -> AsyncMock:
    """A mock ModelClient for tests that only need call assertions."""
    mock = AsyncMock(spec=ModelClient)
    mock.model = "mock-model"
    return mock
