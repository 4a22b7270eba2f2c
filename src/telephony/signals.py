"""Minimal synchronous observer list."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class Signal(Generic[T]):
    """Ordered list of callbacks fired with one argument.

    Listeners run synchronously in registration order. A listener that raises is
    logged and does not prevent the remaining listeners from running.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._listeners: list[Listener[T]] = []

    def add_listener(self, listener: Listener[T]) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""

        self._listeners.append(listener)

        def remove_listener() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove_listener

    def emit(self, value: T) -> None:
        # Listeners may remove themselves (or others) while we iterate.
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                LOGGER.exception("Listener for %s signal failed", self._name)

    def __len__(self) -> int:
        return len(self._listeners)
