"""Event classifier — turns a fresh :class:`~sdk.models.Update` into a typed event.

Decision order: callback query, then pre-checkout query, then message
(a ``bot_command`` entity makes it a command).  Any other shape raises
:class:`~sdk.exceptions.ClassificationGap`, which the poll loop skips.
"""

from __future__ import annotations

import dataclasses
from typing import Any, ClassVar, List, Optional, Tuple

from sdk.exceptions import ClassificationGap
from sdk.models import Message, Update

COMMAND_ENTITY = "bot_command"
CALLBACK_SEPARATOR = "_"


@dataclasses.dataclass(frozen=True, slots=True)
class UpdateEvent:
    """A plain (or edited) message. ``message`` is decorated before emission."""
    kind: ClassVar[str] = "update"

    update_id: int
    message: Any
    edited: bool = False


@dataclasses.dataclass(frozen=True, slots=True)
class CommandEvent(UpdateEvent):
    """A message whose entities mark it as a bot command."""
    kind: ClassVar[str] = "command"

    command: str = ""
    args: Tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class CallbackEvent:
    kind: ClassVar[str] = "callback"

    update_id: int
    callback_query: Any
    args: Tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class CheckoutEvent:
    kind: ClassVar[str] = "checkout"

    update_id: int
    pre_checkout_query: Any


NormalizedEvent = UpdateEvent | CommandEvent | CallbackEvent | CheckoutEvent


def parse_callback_args(data: Optional[str]) -> Tuple[str, ...]:
    """Split a callback payload on ``_`` and drop the leading token.

    ``"vote_up_3"`` gives ``("up", "3")``; a payload without an underscore
    (or no payload at all) gives ``()``.
    """
    if not data or CALLBACK_SEPARATOR not in data:
        return ()
    return tuple(data.split(CALLBACK_SEPARATOR)[1:])


def parse_command(text: str) -> Tuple[str, Tuple[str, ...]]:
    """Return ``(verb, args)`` for a command message text.

    The verb is the first whitespace-delimited token without its leading
    marker character, lower-cased; args are the remaining tokens in order.
    """
    tokens: List[str] = text.split()
    if not tokens:
        return "", ()
    return tokens[0][1:].lower(), tuple(tokens[1:])


def has_command_entity(message: Message) -> bool:
    return any(entity.type == COMMAND_ENTITY for entity in message.entities or ())


def classify(update: Update) -> NormalizedEvent:
    """Map *update* onto exactly one normalized event.

    Raises:
        ClassificationGap: If the update carries none of the known shapes.
    """
    if update.callback_query is not None:
        query = update.callback_query
        return CallbackEvent(update.update_id, query, parse_callback_args(query.data))

    if update.pre_checkout_query is not None:
        return CheckoutEvent(update.update_id, update.pre_checkout_query)

    message = update.message or update.edited_message
    if message is None:
        raise ClassificationGap(update.update_id)

    edited = update.message is None
    if message.text and has_command_entity(message):
        verb, args = parse_command(message.text)
        return CommandEvent(update.update_id, message, edited, command=verb, args=args)
    return UpdateEvent(update.update_id, message, edited)
