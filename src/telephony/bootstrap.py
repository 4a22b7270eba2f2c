"""Single-flight bootstrap of the session registry."""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable

from telephony.signals import Signal

LOGGER = logging.getLogger(__name__)


class InitState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class Initializer:
    """Runs an async bootstrap sequence at most once.

    Concurrent callers of `initialize()` all await the same in-flight task and are
    released together when it finishes. Once ready, `initialize()` returns
    immediately and the ready signal never fires again.
    """

    def __init__(self, bootstrap: Callable[[], Awaitable[None]]) -> None:
        self._bootstrap = bootstrap
        self._state = InitState.UNINITIALIZED
        self._task: asyncio.Task[None] | None = None
        self.ready_signal: Signal[None] = Signal("ready")

    @property
    def state(self) -> InitState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is InitState.READY

    async def initialize(self) -> None:
        if self._state is InitState.READY:
            return
        if self._task is None:
            self._state = InitState.INITIALIZING
            self._task = asyncio.get_running_loop().create_task(self._run())
        # Shielded so that one cancelled caller does not abort the bootstrap for the rest.
        await asyncio.shield(self._task)

    async def _run(self) -> None:
        try:
            await self._bootstrap()
        except BaseException as exc:
            self._state = InitState.UNINITIALIZED
            self._task = None
            if isinstance(exc, Exception):
                LOGGER.exception("Bootstrap failed; initialization may be retried")
            raise
        self._state = InitState.READY
        self._task = None
        self.ready_signal.emit(None)
