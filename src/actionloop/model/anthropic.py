"""Anthropic Claude model client.

Uses the Anthropic Python SDK Messages API with tool use. Consecutive
action results are grouped into a single user message of tool_result
blocks so that roles keep alternating.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from actionloop.domain.models import ActionResultTurn, HumanTurn, ModelTurn, Turn
from actionloop.model.base import (
    BackendFailure,
    Fragment,
    FragmentFilter,
    ModelClient,
    render_result,
)

logger = logging.getLogger(__name__)


class AnthropicModelClient(ModelClient):
    """Model client using Anthropic's Messages API.

    Example usage::

        client = AnthropicModelClient(api_key="sk-ant-...")
        turn = await client.infer(session.turns, registry.schemas())
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        system_prompt: str | None = None,
        max_tokens: int = 1024,
        discard: FragmentFilter | None = None,
    ) -> None:
        super().__init__(model=model, system_prompt=system_prompt, discard=discard)
        self._api_key = api_key
        self._max_tokens = max_tokens
        self._client = None

    async def _ensure_client(self) -> None:
        """Lazily initialize the Anthropic async client."""
        if self._client is not None:
            return
        from anthropic import AsyncAnthropic
        self._client = AsyncAnthropic(api_key=self._api_key)
        logger.info("Initialized Anthropic client (model=%s)", self._model)

    async def infer(
        self,
        turns: Sequence[Turn],
        actions: list[dict[str, Any]],
        session_id: str | None = None,
    ) -> ModelTurn:
        await self._ensure_client()
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "system": self._system_prompt,
            "messages": self._build_messages(turns),
        }
        if actions:
            kwargs["tools"] = [
                {
                    "name": a["name"],
                    "description": a.get("description", ""),
                    "input_schema": a["input_schema"],
                }
                for a in actions
            ]
        if session_id:
            kwargs["metadata"] = {"user_id": session_id}

        try:
            response = await self._client.messages.create(**kwargs)
        except Exception as e:
            raise BackendFailure(f"Anthropic API call failed: {e}", provider="anthropic") from e

        logger.debug("Model stop_reason=%s, %d block(s)", response.stop_reason, len(response.content))
        return self._normalize(self._fragments(response.content))

    @staticmethod
    def _build_messages(turns: Sequence[Turn]) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        for turn in turns:
            if isinstance(turn, HumanTurn):
                messages.append({"role": "user", "content": turn.text})
            elif isinstance(turn, ModelTurn):
                content: list[dict[str, Any]] = []
                if turn.text:
                    content.append({"type": "text", "text": turn.text})
                for r in turn.action_requests:
                    content.append(
                        {"type": "tool_use", "id": r.id, "name": r.action_name, "input": r.arguments}
                    )
                messages.append({"role": "assistant", "content": content})
            elif isinstance(turn, ActionResultTurn):
                block = {
                    "type": "tool_result",
                    "tool_use_id": turn.action_request_id,
                    "content": render_result(turn),
                    "is_error": not turn.ok,
                }
                previous = messages[-1] if messages else None
                if (
                    previous is not None
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                ):
                    previous["content"].append(block)
                else:
                    messages.append({"role": "user", "content": [block]})
        return messages

    @staticmethod
    def _fragments(blocks: Sequence[Any]) -> list[Fragment]:
        """Translate response content blocks into raw fragments."""
        fragments: list[Fragment] = []
        for block in blocks:
            kind = getattr(block, "type", None)
            if kind == "text":
                fragments.append({"type": "text", "text": block.text})
            elif kind == "tool_use":
                fragments.append(
                    {
                        "type": "action_request",
                        "id": block.id,
                        "name": block.name,
                        "arguments": block.input,
                    }
                )
            else:
                fragments.append({"type": kind})
        return fragments
