"""Entity decorator — binds reply/write/edit/delete actions to raw records.

Each decorated object is a small value holding the client it will call and
the addressing ids it needs (chat id, message id, user id).  Decoration never
touches the network; only invoking an action does.  Unknown attributes fall
through to the wrapped pydantic record, so ``message.text`` and
``message.chat.title`` keep working.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Optional, Union

from core.logger import TelepollLogger
from sdk.client import TelepollClient
from sdk.exceptions import DecorationError
from sdk.models import CallbackQuery, Chat, Message, PreCheckoutQuery, User

from bot.classifier import CallbackEvent, CheckoutEvent, NormalizedEvent, UpdateEvent

logger = TelepollLogger.get_logger()


class _Decorated:
    """Attribute passthrough to the wrapped record."""

    __slots__ = ("_client", "_raw")

    def __init__(self, client: TelepollClient, raw: Any) -> None:
        self._client = client
        self._raw = raw

    @property
    def raw(self) -> Any:
        return self._raw

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._raw, name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._raw!r})"


class _Addressable(_Decorated):
    """Something messages can be sent to: a user or a chat."""

    __slots__ = ()

    @property
    def address(self) -> Union[int, str]:
        return self._raw.id

    async def write(self, text: str, **options: Any) -> Dict[str, Any]:
        """Send *text* here and return the API envelope."""
        return await self._client.send_message(self.address, text, **options)

    async def reply(self, text: str, **options: Any) -> Dict[str, Any]:
        return await self.write(text, **options)


class DecoratedUser(_Addressable):
    """A :class:`~sdk.models.User`; messages go to the private chat with them."""

    __slots__ = ()


class DecoratedChat(_Addressable):
    """A :class:`~sdk.models.Chat` (private, group, supergroup or channel)."""

    __slots__ = ()


class DecoratedMessage(_Decorated):
    """A :class:`~sdk.models.Message` with actions bound to its chat and id."""

    __slots__ = ("chat", "from_field", "chat_id", "message_id", "last_edit_result")

    def __init__(self, client: TelepollClient, raw: Message, chat: DecoratedChat, from_field: Optional[DecoratedUser]) -> None:
        super().__init__(client, raw)
        self.chat = chat
        self.from_field = from_field
        self.chat_id: int = chat.id
        self.message_id: int = raw.message_id  # type: ignore[assignment]
        self.last_edit_result: Optional[Dict[str, Any]] = None

    async def write(self, text: str, **options: Any) -> Dict[str, Any]:
        """Send *text* to this message's chat and return the raw envelope."""
        return await self._client.send_message(self.chat_id, text, **options)

    async def reply(self, text: str, quote: bool = False, **options: Any) -> "DecoratedMessage":
        """Send *text* to this message's chat.

        With *quote*, the new message is threaded as a reply to this one.
        Returns the decorated sent message; if the send failed, the failure
        is logged and this message's own decoration is returned instead.
        """
        if quote:
            options.setdefault("reply_parameters", {"message_id": self.message_id})
        result = await self.write(text, **options)
        if result.get("ok") and isinstance(result.get("result"), dict):
            try:
                return decorate_message(self._client, Message.model_validate(result["result"]))
            except DecorationError:
                pass
        logger.warning("Reply not delivered", extra={"chat_id": self.chat_id, "api_response": result})
        return self

    async def edit(self, text: str, **options: Any) -> None:
        """Replace this message's text. Fire-and-forget: never raises.

        A failed edit is logged and kept on :attr:`last_edit_result`.
        """
        result = await self._client.edit_message_text(text, self.message_id, self.chat_id, **options)
        self.last_edit_result = result
        if not result.get("ok"):
            logger.warning("Edit failed", extra={"chat_id": self.chat_id, "message_id": self.message_id, "api_response": result})

    async def delete(self) -> bool:
        """Delete this message; True when the API reports success."""
        result = await self._client.delete_message(self.chat_id, self.message_id)
        return bool(result.get("ok"))


class DecoratedCallbackQuery(_Decorated):
    """A :class:`~sdk.models.CallbackQuery` with its sender and message decorated."""

    __slots__ = ("from_field", "message")

    def __init__(self, client: TelepollClient, raw: CallbackQuery, from_field: DecoratedUser, message: Optional[DecoratedMessage]) -> None:
        super().__init__(client, raw)
        self.from_field = from_field
        self.message = message

    async def answer(self, text: Optional[str] = None, show_alert: Optional[bool] = None) -> Dict[str, Any]:
        return await self._client.answer_callback_query(self._raw.id, text=text, show_alert=show_alert)


class DecoratedPreCheckoutQuery(_Decorated):
    __slots__ = ("from_field",)

    def __init__(self, client: TelepollClient, raw: PreCheckoutQuery, from_field: DecoratedUser) -> None:
        super().__init__(client, raw)
        self.from_field = from_field

    async def accept(self) -> Dict[str, Any]:
        return await self._client.answer_pre_checkout_query(self._raw.id, ok=True)

    async def reject(self, error_message: str) -> Dict[str, Any]:
        return await self._client.answer_pre_checkout_query(self._raw.id, ok=False, error_message=error_message)


# ── Decoration functions ─────────────────────────────────────────────────────


def decorate_user(client: TelepollClient, user: User) -> DecoratedUser:
    return DecoratedUser(client, user)


def decorate_chat(client: TelepollClient, chat: Chat) -> DecoratedChat:
    return DecoratedChat(client, chat)


def decorate_message(client: TelepollClient, message: Message) -> DecoratedMessage:
    """Decorate *message* together with its chat and sender.

    Raises:
        DecorationError: If the message has no ``message_id`` or no chat.
    """
    if message.message_id is None:
        raise DecorationError("message has no message_id")
    if message.chat is None:
        raise DecorationError(f"message {message.message_id} has no chat")

    sender = decorate_user(client, message.from_field) if message.from_field is not None else None
    return DecoratedMessage(client, message, decorate_chat(client, message.chat), sender)


def decorate_callback_query(client: TelepollClient, query: CallbackQuery) -> DecoratedCallbackQuery:
    message = decorate_message(client, query.message) if query.message is not None else None
    return DecoratedCallbackQuery(client, query, decorate_user(client, query.from_field), message)


def decorate_pre_checkout_query(client: TelepollClient, query: PreCheckoutQuery) -> DecoratedPreCheckoutQuery:
    return DecoratedPreCheckoutQuery(client, query, decorate_user(client, query.from_field))


class Decorator:
    """Applies the decoration functions above to normalized events for one client."""

    def __init__(self, client: TelepollClient) -> None:
        self._client = client

    def decorate_message(self, message: Message) -> DecoratedMessage:
        return decorate_message(self._client, message)

    def decorate_user(self, user: User) -> DecoratedUser:
        return decorate_user(self._client, user)

    def decorate(self, event: NormalizedEvent) -> NormalizedEvent:
        """Return a copy of *event* with its raw records decorated."""
        if isinstance(event, UpdateEvent):
            return dataclasses.replace(event, message=self.decorate_message(event.message))
        if isinstance(event, CallbackEvent):
            return dataclasses.replace(event, callback_query=decorate_callback_query(self._client, event.callback_query))
        if isinstance(event, CheckoutEvent):
            return dataclasses.replace(event, pre_checkout_query=decorate_pre_checkout_query(self._client, event.pre_checkout_query))
        raise TypeError(f"Cannot decorate {type(event).__name__}")
