from __future__ import annotations

import logging
from typing import Any, Callable


LOGGER = logging.getLogger(__name__)

Callback = Callable[..., object | None]


class Subscription:
    """Handle returned by `Signal.connect`; `dispose` detaches the callback."""

    def __init__(self, signal: "Signal", callback: Callback) -> None:
        self._signal = signal
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def callback(self) -> Callback:
        return self._callback

    def dispose(self) -> None:
        if not self._active:
            return
        self._active = False
        self._signal._detach(self)


class Signal:
    """Synchronous observer list. Callbacks run in connection order."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscriptions: list[Subscription] = []

    def connect(self, callback: Callback) -> Subscription:
        sub = Subscription(self, callback)
        self._subscriptions.append(sub)
        return sub

    def emit(self, *args: Any) -> None:
        # Snapshot so callbacks may dispose themselves or connect new ones.
        for sub in tuple(self._subscriptions):
            if sub.active:
                sub.callback(*args)

    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _detach(self, sub: Subscription) -> None:
        try:
            self._subscriptions.remove(sub)
        except ValueError:
            LOGGER.debug("subscription already detached from signal %s", self.name)


def dispose_all(subscriptions: list[Subscription]) -> None:
    for sub in subscriptions:
        sub.dispose()
    subscriptions.clear()
