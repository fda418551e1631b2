"""Typed listener registry — the publish/subscribe surface for bot code.

Listeners subscribe to one of the named events below, either with the
``@registry.on("command")`` decorator or :meth:`EventRegistry.add_listener`.
Sync and async callables are both accepted.

Events:
- ``ready``    — payload is the bot's own :class:`~sdk.models.User`; fires once.
- ``update``   — :class:`~bot.classifier.UpdateEvent` (plain or edited message).
- ``command``  — :class:`~bot.classifier.CommandEvent`.
- ``callback`` — :class:`~bot.classifier.CallbackEvent`.
- ``checkout`` — :class:`~bot.classifier.CheckoutEvent`.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Literal, Union, get_args

from core.logger import TelepollLogger

logger = TelepollLogger.get_logger()

EventName = Literal["ready", "update", "command", "callback", "checkout"]
EVENT_NAMES: frozenset[str] = frozenset(get_args(EventName))

Listener = Callable[[Any], Union[None, Awaitable[None]]]


class EventRegistry:
    """Per-bot registry mapping event names to ordered listener lists.

    Usage::

        events = EventRegistry()

        @events.on("command")
        async def on_command(event): ...

        await events.emit("command", event)
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {name: [] for name in EVENT_NAMES}
        self._ready_fired = False

    @staticmethod
    def _check(event: str) -> None:
        if event not in EVENT_NAMES:
            raise ValueError(f"Unknown event {event!r}; expected one of {sorted(EVENT_NAMES)}")

    # ── subscription ─────────────────────────────────────────────────────

    def on(self, event: EventName) -> Callable[[Listener], Listener]:
        """Decorator that subscribes the function to *event*."""
        self._check(event)

        def decorator(func: Listener) -> Listener:
            self._listeners[event].append(func)
            return func
        return decorator

    def add_listener(self, event: EventName, listener: Listener) -> None:
        self._check(event)
        self._listeners[event].append(listener)

    def remove_listener(self, event: EventName, listener: Listener) -> bool:
        """Unsubscribe *listener*; returns ``False`` if it was not subscribed."""
        self._check(event)
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            return False
        return True

    def listeners(self, event: EventName) -> list[Listener]:
        """Return a copy of the listeners for *event*."""
        self._check(event)
        return list(self._listeners[event])

    @property
    def ready_fired(self) -> bool:
        return self._ready_fired

    # ── publication ──────────────────────────────────────────────────────

    async def emit(self, event: EventName, payload: Any) -> int:
        """Deliver *payload* to every listener of *event*, in subscription order.

        A listener that raises is logged and skipped.  ``ready`` is
        delivered at most once per registry.  Returns the number of
        listeners that completed without error.
        """
        self._check(event)
        if event == "ready":
            if self._ready_fired:
                logger.debug("Ignoring repeated ready event")
                return 0
            self._ready_fired = True

        delivered = 0
        for listener in list(self._listeners[event]):
            try:
                result = listener(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event listener failed", extra={"event": event, "listener": getattr(listener, "__name__", repr(listener))})
                continue
            delivered += 1
        return delivered
