"""Domain models for actionloop.

This package contains the turn types, action request/result models and
enumerations shared by every component. All models use Pydantic v2 for
validation and serialization.
"""

from actionloop.domain.models import (
    ActionFailure,
    ActionFailureKind,
    ActionRequest,
    ActionResultTurn,
    HumanTurn,
    LoopState,
    ModelTurn,
    Turn,
)

__all__ = [
    "ActionFailure",
    "ActionFailureKind",
    "ActionRequest",
    "ActionResultTurn",
    "HumanTurn",
    "LoopState",
    "ModelTurn",
    "Turn",
]
