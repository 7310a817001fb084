"""Exception types shared across the actionloop package.

Action-level failures (unknown action, handler failure) are recorded as
data on the session and never raised out of a run. The exceptions here
are the fatal kinds: they abort a run and reach the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from actionloop.agent.session import Session


class ActionLoopError(Exception):
    """Base class for all actionloop exceptions.

    The agent loop attaches the session it was driving before re-raising,
    so callers can inspect the turn history at the point of failure.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.session: Session | None = None


class StateInvariantViolation(ActionLoopError):
    """Raised when a component breaches the session's turn contract."""


class StepLimitExceeded(ActionLoopError):
    """Raised when a run exceeds its configured model-step bound."""

    def __init__(self, message: str, max_steps: int) -> None:
        super().__init__(message)
        self.max_steps = max_steps
