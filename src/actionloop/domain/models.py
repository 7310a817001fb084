"""Core domain models for the actionloop system.

These models represent the data flowing through a run: the human task,
model responses carrying action requests, and the results of executing
those actions. Every turn is an immutable Pydantic model; a session is
an append-only sequence of them.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class LoopState(str, enum.Enum):
    """Position of the agent loop within a run."""

    AWAITING_MODEL = "awaiting_model"
    AWAITING_ACTIONS = "awaiting_actions"
    DONE = "done"


class ActionFailureKind(str, enum.Enum):
    """Why an action request did not produce an output."""

    UNKNOWN_ACTION = "unknown_action"  # Name not present in the registry
    INVALID_ARGUMENTS = "invalid_arguments"  # Arguments rejected by the action's schema
    EXECUTION_FAILURE = "execution_failure"  # Handler raised
    TIMEOUT = "timeout"  # Handler exceeded the per-action timeout


# ---------------------------------------------------------------------------
# Action Models
# ---------------------------------------------------------------------------


class ActionRequest(BaseModel):
    """A model-issued instruction to invoke one action."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Correlation id, unique within the producing ModelTurn")
    action_name: str = Field(description="Name the action is registered under")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Structured action arguments")


class ActionFailure(BaseModel):
    """Structured failure recorded in place of an action's output."""

    model_config = ConfigDict(frozen=True)

    kind: ActionFailureKind
    message: str = Field(default="", description="Human-readable failure detail shown to the model")


# ---------------------------------------------------------------------------
# Turn Models (discriminated union)
# ---------------------------------------------------------------------------


class HumanTurn(BaseModel):
    """The task description that starts a run."""

    model_config = ConfigDict(frozen=True)

    turn_type: Literal["human"] = "human"
    text: str = Field(description="The task the model is asked to carry out")


class ModelTurn(BaseModel):
    """Output of one model invocation.

    A turn with no action requests is the terminal signal; otherwise the
    requests are dispatched and the loop continues.
    """

    model_config = ConfigDict(frozen=True)

    turn_type: Literal["model"] = "model"
    text: str | None = Field(default=None, description="Free-text part of the response, if any")
    action_requests: list[ActionRequest] = Field(
        default_factory=list, description="Requested action invocations, in issue order"
    )

    @property
    def is_terminal(self) -> bool:
        return not self.action_requests

    def as_fragments(self) -> list[dict[str, Any]]:
        """Render this turn back into the raw fragment form model clients produce."""
        fragments: list[dict[str, Any]] = []
        if self.text is not None:
            fragments.append({"type": "text", "text": self.text})
        for request in self.action_requests:
            fragments.append(
                {
                    "type": "action_request",
                    "id": request.id,
                    "name": request.action_name,
                    "arguments": dict(request.arguments),
                }
            )
        return fragments


class ActionResultTurn(BaseModel):
    """The result of executing one ActionRequest."""

    model_config = ConfigDict(frozen=True)

    turn_type: Literal["action_result"] = "action_result"
    action_request_id: str = Field(description="Id of the ActionRequest this answers")
    action_name: str = Field(description="Name of the requested action")
    output: Any = Field(default=None, description="Handler return value on success")
    error: ActionFailure | None = Field(default=None, description="Failure detail, if the action failed")

    @property
    def ok(self) -> bool:
        return self.error is None


Turn = Annotated[
    Union[HumanTurn, ModelTurn, ActionResultTurn],
    Field(discriminator="turn_type"),
]
