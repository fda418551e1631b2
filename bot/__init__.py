"""Bot layer — classification, decoration, events and the poll loop.

This package may import from ``core/``, ``sdk/`` and ``config`` only.
"""

from bot.application import TelepollBot
from bot.classifier import (
    CallbackEvent,
    CheckoutEvent,
    CommandEvent,
    UpdateEvent,
    classify,
)
from bot.decorator import (
    DecoratedCallbackQuery,
    DecoratedChat,
    DecoratedMessage,
    DecoratedPreCheckoutQuery,
    DecoratedUser,
    Decorator,
)
from bot.events import EventRegistry
from bot.poller import LoopState, PollLoop

__all__ = [
    # Facade
    "TelepollBot",
    # Events
    "UpdateEvent",
    "CommandEvent",
    "CallbackEvent",
    "CheckoutEvent",
    "classify",
    "EventRegistry",
    # Decoration
    "Decorator",
    "DecoratedMessage",
    "DecoratedUser",
    "DecoratedChat",
    "DecoratedCallbackQuery",
    "DecoratedPreCheckoutQuery",
    # Polling
    "PollLoop",
    "LoopState",
]
