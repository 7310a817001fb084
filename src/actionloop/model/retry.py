"""Retry wrapper for model clients.

The agent loop never retries a failed inference on its own. Wrap a
client in RetryingModelClient to retry BackendFailure with exponential
backoff; the wrapped call has no caller-side effects, so re-issuing it
is safe.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from actionloop.domain.models import ModelTurn, Turn
from actionloop.model.base import BackendFailure, ModelClient

logger = logging.getLogger(__name__)


class RetryingModelClient(ModelClient):
    """Retries the wrapped client's infer() on BackendFailure."""

    def __init__(
        self,
        inner: ModelClient,
        max_retries: int = 2,
        backoff: float = 1.0,
    ) -> None:
        super().__init__(model=inner.model)
        self._inner = inner
        self._max_retries = max_retries
        self._backoff = backoff

    @property
    def inner(self) -> ModelClient:
        return self._inner

    async def infer(
        self,
        turns: Sequence[Turn],
        actions: list[dict[str, Any]],
        session_id: str | None = None,
    ) -> ModelTurn:
        attempt = 0
        while True:
            try:
                return await self._inner.infer(turns, actions, session_id=session_id)
            except BackendFailure as e:
                if attempt >= self._max_retries:
                    raise
                delay = self._backoff * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "Model call failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt,
                    self._max_retries + 1,
                    delay,
                    e,
                )
                await asyncio.sleep(delay)
