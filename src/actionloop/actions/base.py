"""Action registry: the set of capabilities a model may invoke.

An action is registered data, not a subclass: a name, a description for
the model, a JSON input schema, and a handler. When an action declares a
Pydantic argument model, its schema is derived from the model and the
dispatcher validates incoming arguments against it before calling the
handler.

Example usage::

    registry = ActionRegistry()

    class NavigateArgs(BaseModel):
        url: str

    @registry.action("navigate", "Open a URL", args_model=NavigateArgs)
    async def navigate(args: NavigateArgs) -> str:
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ActionHandler = Callable[[Any], Any | Awaitable[Any]]

EMPTY_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


class ActionSpec(BaseModel):
    """One registered action.

    Attributes:
        name: Name the model uses to request the action.
        description: Text shown to the model describing what the action does.
        handler: Callable receiving the arguments (a validated ``args_model``
            instance when one is declared, otherwise the raw dict). May be
            sync or async. Sync handlers run in a worker thread so they
            neither block other actions in the batch nor escape the
            dispatcher timeout; a timed-out thread is abandoned, not killed.
        input_schema: JSON schema of the arguments exposed to the model.
        args_model: Optional Pydantic model used to validate arguments.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str = ""
    handler: Callable[..., Any]
    input_schema: dict[str, Any] = Field(default_factory=lambda: dict(EMPTY_SCHEMA))
    args_model: type[BaseModel] | None = None

    def tool_schema(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


class ActionRegistry:
    """Read-only-after-setup mapping from action name to ActionSpec.

    A registry may be shared across concurrent runs once populated.
    """

    def __init__(self, specs: list[ActionSpec] | None = None) -> None:
        self._specs: dict[str, ActionSpec] = {}
        for spec in specs or []:
            self.add(spec)

    def add(self, spec: ActionSpec) -> ActionSpec:
        if spec.name in self._specs:
            raise ValueError(f"Action {spec.name!r} is already registered")
        self._specs[spec.name] = spec
        logger.debug("Registered action %s", spec.name)
        return spec

    def register(
        self,
        name: str,
        handler: ActionHandler,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
        args_model: type[BaseModel] | None = None,
    ) -> ActionSpec:
        """Register a handler under ``name``.

        The input schema is taken from ``args_model`` when given, else from
        ``input_schema``, else it is an empty object schema.
        """
        if args_model is not None:
            schema = args_model.model_json_schema()
        elif input_schema is not None:
            schema = input_schema
        else:
            schema = dict(EMPTY_SCHEMA)
        return self.add(
            ActionSpec(
                name=name,
                description=description,
                handler=handler,
                input_schema=schema,
                args_model=args_model,
            )
        )

    def action(
        self,
        name: str,
        description: str = "",
        input_schema: dict[str, Any] | None = None,
        args_model: type[BaseModel] | None = None,
    ) -> Callable[[ActionHandler], ActionHandler]:
        """Decorator form of register()."""

        def decorator(handler: ActionHandler) -> ActionHandler:
            self.register(name, handler, description, input_schema, args_model)
            return handler

        return decorator

    def get(self, name: str) -> ActionSpec | None:
        return self._specs.get(name)

    def names(self) -> list[str]:
        return list(self._specs)

    def schemas(self) -> list[dict[str, Any]]:
        """Schemas of every registered action, in registration order."""
        return [spec.tool_schema() for spec in self._specs.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ActionSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


class ActionError(Exception):
    """Raised by action handlers to report a failure to the model.

    The dispatcher turns it into an execution_failure result, so it never
    aborts a run the way an ActionLoopError does.
    """

    def __init__(self, message: str, action: str = "") -> None:
        super().__init__(message)
        self.action = action
