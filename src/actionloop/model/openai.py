"""OpenAI-compatible model client.

Works with OpenAI, OpenRouter, and any OpenAI-compatible API by setting
a custom base_url. Actions are exposed as function tools.
"""

from __future__ import annotations

import json
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


class OpenAIModelClient(ModelClient):
    """Model client using the chat completions API with tool calling."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        system_prompt: str | None = None,
        max_tokens: int = 1024,
        discard: FragmentFilter | None = None,
    ) -> None:
        super().__init__(model=model, system_prompt=system_prompt, discard=discard)
        self._api_key = api_key
        self._base_url = base_url
        self._max_tokens = max_tokens
        self._client = None

    async def _ensure_client(self) -> None:
        """Lazily initialize the OpenAI async client."""
        if self._client is not None:
            return
        from openai import AsyncOpenAI
        kwargs = {"api_key": self._api_key}
        if self._base_url:
            kwargs["base_url"] = self._base_url
        self._client = AsyncOpenAI(**kwargs)
        logger.info("Initialized OpenAI client (model=%s, base_url=%s)", self._model, self._base_url)

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
            "messages": self._build_messages(turns),
        }
        if actions:
            kwargs["tools"] = [self._tool_schema(a) for a in actions]
        if session_id:
            kwargs["user"] = session_id

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as e:
            raise BackendFailure(f"OpenAI API call failed: {e}", provider="openai") from e

        if not response.choices:
            raise BackendFailure("OpenAI API returned no choices", provider="openai")
        message = response.choices[0].message
        logger.debug("Model raw content: %s", str(message.content)[:200])
        return self._normalize(self._fragments(message))

    def _build_messages(self, turns: Sequence[Turn]) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = [{"role": "system", "content": self._system_prompt}]
        for turn in turns:
            if isinstance(turn, HumanTurn):
                messages.append({"role": "user", "content": turn.text})
            elif isinstance(turn, ModelTurn):
                message: dict[str, Any] = {"role": "assistant", "content": turn.text}
                if turn.action_requests:
                    message["tool_calls"] = [
                        {
                            "id": r.id,
                            "type": "function",
                            "function": {
                                "name": r.action_name,
                                "arguments": json.dumps(r.arguments),
                            },
                        }
                        for r in turn.action_requests
                    ]
                messages.append(message)
            elif isinstance(turn, ActionResultTurn):
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": turn.action_request_id,
                        "content": render_result(turn),
                    }
                )
        return messages

    @staticmethod
    def _tool_schema(action: dict[str, Any]) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": action["name"],
                "description": action.get("description", ""),
                "parameters": action["input_schema"],
            },
        }

    @staticmethod
    def _fragments(message: Any) -> list[Fragment]:
        """Translate a chat completion message into raw fragments."""
        fragments: list[Fragment] = []
        content = message.content
        if isinstance(content, str):
            fragments.append({"type": "text", "text": content})
        elif isinstance(content, list):
            # Some compatible backends return content parts, occasionally
            # echoing tool_use markers next to the real tool_calls.
            for part in content:
                fragments.append(part if isinstance(part, dict) else {"type": type(part).__name__})

        for call in message.tool_calls or []:
            function = getattr(call, "function", None)
            raw_args = getattr(function, "arguments", None)
            try:
                arguments = json.loads(raw_args) if raw_args else {}
            except (TypeError, json.JSONDecodeError):
                logger.warning("Undecodable tool call arguments: %s", str(raw_args)[:100])
                arguments = None
            fragments.append(
                {
                    "type": "action_request",
                    "id": getattr(call, "id", None),
                    "name": getattr(function, "name", None),
                    "arguments": arguments,
                }
            )
        return fragments
