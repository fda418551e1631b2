"""Telegram Bot API SDK — transport, endpoint client, models, keyboard builder.

Usage::

    from sdk import TelepollClient, InlineKeyboardBuilder

    client = TelepollClient(token)
    result = await client.send_message(42, "hello")
    if not result["ok"]:
        print(result["description"])
"""

from sdk.client import TelepollClient
from sdk.exceptions import (
    ClassificationGap,
    DecorationError,
    RemoteError,
    TelepollError,
    TransportError,
)
from sdk.keyboard import InlineKeyboardBuilder
from sdk.transport import Transport

__all__ = [
    "TelepollClient",
    "Transport",
    "InlineKeyboardBuilder",
    "TelepollError",
    "TransportError",
    "RemoteError",
    "ClassificationGap",
    "DecorationError",
]
