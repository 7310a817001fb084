"""Executes batches of action requests against an ActionRegistry.

Every request yields exactly one ActionResultTurn, in request order.
Failures of individual actions are captured as structured results so
that one bad request never prevents results for the others.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

from pydantic import ValidationError

from actionloop.actions.base import ActionHandler, ActionRegistry
from actionloop.domain.models import (
    ActionFailure,
    ActionFailureKind,
    ActionRequest,
    ActionResultTurn,
)

logger = logging.getLogger(__name__)


class _DeadlineExceeded(Exception):
    """An action outlived the dispatcher's action_timeout."""


class ActionDispatcher:
    """Resolves and runs requested actions.

    In concurrent mode the batch is fanned out as independent tasks and
    joined; each task writes only its own slot, so the returned list is in
    request order whatever order the actions complete in.
    """

    def __init__(
        self,
        registry: ActionRegistry,
        concurrent: bool = True,
        action_timeout: float | None = None,
    ) -> None:
        self._registry = registry
        self._concurrent = concurrent
        self._action_timeout = action_timeout

    @property
    def registry(self) -> ActionRegistry:
        return self._registry

    async def execute(self, requests: list[ActionRequest]) -> list[ActionResultTurn]:
        """Execute every request and return one result per request, in order."""
        if not requests:
            return []

        slots: list[ActionResultTurn | None] = [None] * len(requests)

        async def fill(index: int, request: ActionRequest) -> None:
            slots[index] = await self._execute_one(request)

        if self._concurrent and len(requests) > 1:
            await asyncio.gather(*(fill(i, r) for i, r in enumerate(requests)))
        else:
            for i, request in enumerate(requests):
                await fill(i, request)

        results = [slot for slot in slots if slot is not None]
        failed = sum(1 for r in results if not r.ok)
        logger.info("Dispatched %d action(s), %d failed", len(results), failed)
        return results

    async def _execute_one(self, request: ActionRequest) -> ActionResultTurn:
        spec = self._registry.get(request.action_name)
        if spec is None:
            logger.warning("Unknown action requested: %s", request.action_name)
            return self._failure(
                request,
                ActionFailureKind.UNKNOWN_ACTION,
                f"No action named {request.action_name!r}. "
                f"Available actions: {', '.join(self._registry.names()) or '(none)'}",
            )

        if spec.args_model is not None:
            try:
                arguments = spec.args_model.model_validate(request.arguments)
            except ValidationError as e:
                logger.warning("Invalid arguments for %s: %s", request.action_name, e)
                return self._failure(request, ActionFailureKind.INVALID_ARGUMENTS, str(e))
        else:
            arguments = dict(request.arguments)

        try:
            output = await self._invoke(spec.handler, arguments)
        except _DeadlineExceeded:
            logger.warning("Action %s timed out after %ss", request.action_name, self._action_timeout)
            return self._failure(
                request,
                ActionFailureKind.TIMEOUT,
                f"Action timed out after {self._action_timeout} seconds",
            )
        except Exception as e:
            logger.warning("Action %s failed: %s", request.action_name, e)
            return self._failure(
                request, ActionFailureKind.EXECUTION_FAILURE, f"{type(e).__name__}: {e}"
            )

        logger.debug("Action %s (%s) succeeded", request.action_name, request.id)
        return ActionResultTurn(
            action_request_id=request.id,
            action_name=request.action_name,
            output=output,
        )

    async def _invoke(self, handler: ActionHandler, arguments: Any) -> Any:
        if inspect.iscoroutinefunction(handler):
            call = handler(arguments)
        else:
            call = self._call_sync(handler, arguments)
        if self._action_timeout is None:
            return await call

        # Only the dispatcher's own deadline counts as a timeout; a
        # TimeoutError raised by the handler is an ordinary failure.
        task = asyncio.ensure_future(call)
        try:
            done, _ = await asyncio.wait({task}, timeout=self._action_timeout)
        finally:
            if not task.done():
                task.cancel()
        if not done:
            raise _DeadlineExceeded
        return task.result()

    @staticmethod
    async def _call_sync(handler: ActionHandler, arguments: Any) -> Any:
        result = await asyncio.to_thread(handler, arguments)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    def _failure(
        request: ActionRequest, kind: ActionFailureKind, message: str
    ) -> ActionResultTurn:
        return ActionResultTurn(
            action_request_id=request.id,
            action_name=request.action_name,
            error=ActionFailure(kind=kind, message=message),
        )
