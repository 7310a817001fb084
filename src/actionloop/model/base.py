"""Abstract base class for model clients.

A model client sends the turn history and the available action schemas
to an inference backend and returns a ModelTurn. Concrete clients
translate the backend's response into a list of raw *fragments*
(plain dicts); this module normalizes those fragments into a well-formed
ModelTurn, dropping anything malformed on the way.

Fragment shapes::

    {"type": "text", "text": "..."}
    {"type": "action_request", "id": "...", "name": "...", "arguments": {...}}

Any other shape is malformed and discarded.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from actionloop.domain.models import ActionRequest, ActionResultTurn, ModelTurn, Turn
from actionloop.errors import ActionLoopError, StateInvariantViolation

logger = logging.getLogger(__name__)

Fragment = dict[str, Any]
FragmentFilter = Callable[[Fragment], bool]


DEFAULT_SYSTEM_PROMPT = """You are a browser-automation assistant.
Use ONLY the provided tools. Reply with tool calls until the task is done.
When finished, just respond with "DONE"."""


class ModelClient(ABC):
    """Abstract interface for model inference backends.

    Args:
        model: Backend model identifier.
        system_prompt: System prompt override; defaults to DEFAULT_SYSTEM_PROMPT.
        discard: Backend-specific predicate marking extra fragments to drop,
            applied on top of the structural checks.
    """

    def __init__(
        self,
        model: str,
        system_prompt: str | None = None,
        discard: FragmentFilter | None = None,
    ) -> None:
        self._model = model
        self._system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self._discard = discard

    @property
    def model(self) -> str:
        return self._model

    @abstractmethod
    async def infer(
        self,
        turns: Sequence[Turn],
        actions: list[dict[str, Any]],
        session_id: str | None = None,
    ) -> ModelTurn:
        """Run one inference over ``turns`` with ``actions`` exposed as tools.

        Raises:
            BackendFailure: If the backend could not produce a response.
            StateInvariantViolation: If the response is empty after
                normalization.
        """
        ...

    def _normalize(self, fragments: list[Fragment]) -> ModelTurn:
        return normalize_fragments(fragments, discard=self._discard, provider=type(self).__name__)


def is_malformed_fragment(fragment: Any) -> bool:
    """Structural check: True if the fragment cannot contribute to a ModelTurn."""
    if not isinstance(fragment, dict):
        return True
    kind = fragment.get("type")
    if kind == "text":
        text = fragment.get("text")
        return not isinstance(text, str) or not text.strip()
    if kind == "action_request":
        return (
            not isinstance(fragment.get("id"), str)
            or not fragment["id"]
            or not isinstance(fragment.get("name"), str)
            or not fragment["name"]
            or not isinstance(fragment.get("arguments"), dict)
        )
    return True


def normalize_fragments(
    fragments: list[Fragment],
    discard: FragmentFilter | None = None,
    provider: str = "",
) -> ModelTurn:
    """Build a ModelTurn from raw fragments, dropping malformed ones.

    Text fragments are stripped and joined with newlines. An action request
    whose id repeats an earlier one is treated as a duplicated echo and
    dropped. Applying this to ``turn.as_fragments()`` returns ``turn``.

    Raises:
        StateInvariantViolation: If nothing usable remains.
    """
    texts: list[str] = []
    requests: list[ActionRequest] = []
    seen_ids: set[str] = set()
    dropped = 0

    for fragment in fragments:
        if is_malformed_fragment(fragment) or (discard is not None and discard(fragment)):
            dropped += 1
            continue
        if fragment["type"] == "text":
            texts.append(fragment["text"].strip())
            continue
        if fragment["id"] in seen_ids:
            dropped += 1
            continue
        seen_ids.add(fragment["id"])
        requests.append(
            ActionRequest(
                id=fragment["id"],
                action_name=fragment["name"],
                arguments=fragment["arguments"],
            )
        )

    if dropped:
        logger.warning("Discarded %d malformed fragment(s) from %s response", dropped, provider or "model")

    text = "\n".join(texts) if texts else None
    if text is None and not requests:
        raise StateInvariantViolation(
            f"{provider or 'Model'} response carried neither text nor action requests"
        )
    return ModelTurn(text=text, action_requests=requests)


def render_result(turn: ActionResultTurn) -> str:
    """Render an action result as the text the model sees."""
    if turn.error is not None:
        return f"ERROR [{turn.error.kind.value}]: {turn.error.message}"
    if turn.output is None:
        return "OK"
    if isinstance(turn.output, str):
        return turn.output
    try:
        return json.dumps(turn.output, default=str)
    except (TypeError, ValueError):
        return str(turn.output)


class BackendFailure(ActionLoopError):
    """Raised when the model backend cannot produce a response."""

    def __init__(self, message: str, provider: str = "") -> None:
        super().__init__(message)
        self.provider = provider
