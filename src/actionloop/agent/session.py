"""Append-only turn log for a single run.

The session is owned by exactly one AgentLoop. It holds no business
logic beyond enforcing the turn contract: one human turn first, model
turns only when no action requests are pending, and action results
arriving in the order their requests were issued.
"""

from __future__ import annotations

import logging
from collections import deque

from actionloop.domain.models import ActionResultTurn, HumanTurn, ModelTurn, Turn
from actionloop.errors import StateInvariantViolation

logger = logging.getLogger(__name__)


class Session:
    """Ordered turn history plus the identifier of one run."""

    def __init__(self, session_id: str) -> None:
        self._session_id = session_id
        self._turns: list[Turn] = []
        self._outstanding: deque[str] = deque()

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def outstanding(self) -> tuple[str, ...]:
        """Ids of action requests still waiting for a result, in issue order."""
        return tuple(self._outstanding)

    @property
    def last_model_turn(self) -> ModelTurn | None:
        for turn in reversed(self._turns):
            if isinstance(turn, ModelTurn):
                return turn
        return None

    @property
    def is_complete(self) -> bool:
        """Whether the last turn is a terminal model response."""
        return bool(self._turns) and isinstance(self._turns[-1], ModelTurn) and self._turns[-1].is_terminal

    @property
    def final_text(self) -> str | None:
        return self._turns[-1].text if self.is_complete else None

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, turn: Turn) -> int:
        """Append a turn and return its index.

        Raises:
            StateInvariantViolation: If the turn breaks the session's
                ordering or correlation rules.
        """
        if isinstance(turn, HumanTurn):
            if self._turns:
                raise StateInvariantViolation("A human turn may only start a session")
        elif not self._turns:
            raise StateInvariantViolation(
                f"Session must start with a human turn, got {turn.turn_type!r}"
            )
        elif isinstance(turn, ModelTurn):
            self._check_model_turn(turn)
            self._outstanding.extend(request.id for request in turn.action_requests)
        elif isinstance(turn, ActionResultTurn):
            if not self._outstanding:
                raise StateInvariantViolation(
                    f"Result for {turn.action_request_id!r} arrived with no outstanding request"
                )
            expected = self._outstanding[0]
            if turn.action_request_id != expected:
                raise StateInvariantViolation(
                    f"Result for {turn.action_request_id!r} does not match "
                    f"next outstanding request {expected!r}"
                )
            self._outstanding.popleft()
        else:
            raise StateInvariantViolation(f"Unsupported turn type: {type(turn).__name__}")

        self._turns.append(turn)
        logger.debug("Session %s: appended %s turn #%d", self._session_id, turn.turn_type, len(self._turns) - 1)
        return len(self._turns) - 1

    def _check_model_turn(self, turn: ModelTurn) -> None:
        if self._outstanding:
            raise StateInvariantViolation(
                f"Model turn appended while {len(self._outstanding)} action request(s) "
                "are still awaiting results"
            )
        if not turn.action_requests and turn.text is None:
            raise StateInvariantViolation("Model turn carries neither text nor action requests")
        ids = [request.id for request in turn.action_requests]
        if len(set(ids)) != len(ids):
            raise StateInvariantViolation(f"Model turn repeats action request ids: {ids}")

    def summary(self) -> list[str]:
        """One display line per turn, for logs and the CLI."""
        lines = []
        for index, turn in enumerate(self._turns):
            if isinstance(turn, HumanTurn):
                detail = turn.text.strip()[:80]
            elif isinstance(turn, ModelTurn):
                if turn.action_requests:
                    detail = ", ".join(
                        f"{r.action_name}({r.id})" for r in turn.action_requests
                    )
                else:
                    detail = (turn.text or "").strip()[:80]
            else:
                if turn.ok:
                    detail = f"{turn.action_name}({turn.action_request_id}) ok"
                else:
                    detail = (
                        f"{turn.action_name}({turn.action_request_id}) "
                        f"{turn.error.kind.value}: {turn.error.message[:60]}"
                    )
            lines.append(f"[{index}] {turn.turn_type}: {detail}")
        return lines
