"""The central agent loop that drives a run to completion.

Alternates between model inference and action execution:
model -> [dispatch actions -> model]* -> done

The loop is an explicit state machine over LoopState. Each run owns a
fresh Session; turns are appended only after the awaited model call or
action batch returns, so cancelling a run at either suspension point
never leaves a partial turn behind.
"""

from __future__ import annotations

import logging

from actionloop.actions.base import ActionRegistry
from actionloop.actions.dispatcher import ActionDispatcher
from actionloop.agent.session import Session
from actionloop.domain.models import HumanTurn, LoopState, ModelTurn
from actionloop.errors import ActionLoopError, StateInvariantViolation, StepLimitExceeded
from actionloop.model.base import ModelClient

logger = logging.getLogger(__name__)


class AgentLoop:
    """Orchestrates the model -> actions -> model cycle for one run at a time.

    Usage::

        loop = AgentLoop(model=client, registry=registry)
        session = await loop.run("demo-session-1", "Open example.test and report done")

    Args:
        model: Client used for every inference step.
        registry: Actions exposed to the model.
        dispatcher: Executor for requested actions; defaults to a concurrent
            ActionDispatcher over ``registry``.
        max_steps: Optional bound on model invocations per run. Exceeding it
            raises StepLimitExceeded.
    """

    def __init__(
        self,
        model: ModelClient,
        registry: ActionRegistry,
        dispatcher: ActionDispatcher | None = None,
        max_steps: int | None = None,
    ) -> None:
        if max_steps is not None and max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._model = model
        self._registry = registry
        self._dispatcher = dispatcher or ActionDispatcher(registry)
        self._max_steps = max_steps
        self._state = LoopState.DONE
        self._running = False

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(self, session_id: str, task: str) -> Session:
        """Execute a run for ``task`` and return the completed session.

        Raises:
            BackendFailure: If the model client fails.
            StateInvariantViolation: If a component breaks the turn contract.
            StepLimitExceeded: If ``max_steps`` is configured and exceeded.
            RuntimeError: If this loop is already running.
        """
        if self._running:
            raise RuntimeError("AgentLoop is already running; use one loop per concurrent run")

        session = Session(session_id)
        session.append(HumanTurn(text=task))
        self._running = True
        self._state = LoopState.AWAITING_MODEL
        steps = 0
        pending: ModelTurn | None = None

        logger.info("Run %s starting: %s", session_id, task.strip()[:100])

        try:
            while self._state is not LoopState.DONE:
                if self._state is LoopState.AWAITING_MODEL:
                    if self._max_steps is not None and steps >= self._max_steps:
                        raise StepLimitExceeded(
                            f"Run {session_id} exceeded {self._max_steps} model step(s)",
                            max_steps=self._max_steps,
                        )
                    steps += 1
                    pending = await self._model.infer(
                        session.turns, self._registry.schemas(), session_id=session_id
                    )
                    session.append(pending)
                    logger.info(
                        "Run %s step %d: %d action request(s)",
                        session_id,
                        steps,
                        len(pending.action_requests),
                    )
                    if pending.is_terminal:
                        self._state = LoopState.DONE
                    else:
                        self._state = LoopState.AWAITING_ACTIONS

                elif self._state is LoopState.AWAITING_ACTIONS:
                    results = await self._dispatcher.execute(pending.action_requests)
                    if len(results) != len(pending.action_requests):
                        raise StateInvariantViolation(
                            f"Dispatcher returned {len(results)} result(s) for "
                            f"{len(pending.action_requests)} request(s)"
                        )
                    for result in results:
                        session.append(result)
                    self._state = LoopState.AWAITING_MODEL

        except ActionLoopError as e:
            e.session = session
            logger.error("Run %s failed after %d step(s): %s", session_id, steps, e)
            raise
        finally:
            self._running = False
            if self._state is not LoopState.DONE:
                self._state = LoopState.DONE

        logger.info(
            "Run %s finished: steps=%d, turns=%d, final=%r",
            session_id,
            steps,
            len(session),
            (session.final_text or "")[:100],
        )
        return session


async def run_automation(
    session_id: str,
    task: str,
    *,
    model: ModelClient,
    registry: ActionRegistry,
    concurrent_actions: bool = True,
    action_timeout: float | None = None,
    max_steps: int | None = None,
) -> Session:
    """Build a one-off AgentLoop and run ``task`` under ``session_id``."""
    dispatcher = ActionDispatcher(
        registry, concurrent=concurrent_actions, action_timeout=action_timeout
    )
    loop = AgentLoop(model=model, registry=registry, dispatcher=dispatcher, max_steps=max_steps)
    return await loop.run(session_id, task)
