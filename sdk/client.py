"""TelepollClient — async service layer over the Bot API endpoints this library uses.

Every method returns the API envelope as a plain dict and never raises for
network or remote failures; check ``result["ok"]`` before using
``result["result"]``.  Methods that accept raw ``bytes`` switch from a GET
call to a multipart upload automatically.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from core.logger import TelepollLogger
from sdk.models import InputFile, InputSticker, LabeledPrice
from sdk.transport import DEFAULT_HOST, DEFAULT_TIMEOUT, Sink, Transport

logger = TelepollLogger.get_logger()

ChatId = Union[int, str]
FileInput = Union[str, bytes, InputFile]

# Short names accepted for ``message_effect_id``.
MESSAGE_EFFECTS: Dict[str, str] = {
    "fire": "5104841245755180586",
    "like": "5107584321108051014",
    "dislike": "5104858069142078462",
    "heart": "5044134455711629726",
    "surprise": "5046509860389126442",
    "poop": "5046589136895476101",
}


def _is_upload(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, InputFile))


class TelepollClient:
    """Client-side service layer for the Telegram Bot API.

    Each public coroutine corresponds to one Bot API endpoint.
    """

    def __init__(self, token: str, host: str = DEFAULT_HOST, timeout: float = DEFAULT_TIMEOUT, transport: Optional[Transport] = None) -> None:
        """Create a client for the bot identified by *token*.

        Args:
            token: Bot token issued by BotFather.
            host: API host, without scheme.
            timeout: Per-request timeout in seconds.
            transport: Pre-built transport, mostly for tests.
        """
        self.transport = transport or Transport(token, host=host, timeout=timeout)

    async def _call(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.transport.call(method, payload)

    async def _upload(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.transport.post(method, payload)

    async def _send_file(self, method: str, field: str, value: FileInput, payload: Dict[str, Any], filename: Optional[str] = None) -> Dict[str, Any]:
        if isinstance(value, (bytes, bytearray)):
            value = InputFile(content=bytes(value), filename=filename)
        payload[field] = value
        if _is_upload(value):
            return await self._upload(method, payload)
        return await self._call(method, payload)

    # ------------------------------------------------------------------
    #  Identity and updates
    # ------------------------------------------------------------------

    async def get_me(self) -> Dict[str, Any]:
        """Basic information about the bot; used as the startup probe."""
        return await self._call("getMe")

    async def get_updates(self, offset: Optional[int] = None, limit: Optional[int] = None, timeout: Optional[int] = None) -> Dict[str, Any]:
        """Fetch pending updates. *offset* acknowledges everything below it."""
        payload: Dict[str, Any] = {}
        if offset is not None:
            payload["offset"] = offset
        if limit is not None:
            payload["limit"] = limit
        if timeout is not None:
            payload["timeout"] = timeout
        return await self._call("getUpdates", payload)

    # ------------------------------------------------------------------
    #  Messages
    # ------------------------------------------------------------------

    async def send_message(self, chat_id: ChatId, text: str, **options: Any) -> Dict[str, Any]:
        """Send a text message.

        *options* are passed through (``parse_mode``, ``reply_markup``,
        ``reply_parameters`` …).  ``message_effect_id`` also accepts the
        short names in :data:`MESSAGE_EFFECTS`.
        """
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text, **options}
        effect = payload.get("message_effect_id")
        if effect in MESSAGE_EFFECTS:
            payload["message_effect_id"] = MESSAGE_EFFECTS[effect]
        logger.debug("Sending message", extra={"chat_id": chat_id, "api_endpoint": "sendMessage", "text_preview": text[:80]})
        return await self._call("sendMessage", payload)

    async def send_photo(self, chat_id: ChatId, photo: FileInput, caption: Optional[str] = None, filename: Optional[str] = None, **options: Any) -> Dict[str, Any]:
        """Send a photo by ``file_id``/URL, or upload it when given bytes."""
        payload: Dict[str, Any] = {"chat_id": str(chat_id), **options}
        if caption is not None:
            payload["caption"] = caption
        return await self._send_file("sendPhoto", "photo", photo, payload, filename)

    async def send_document(self, chat_id: ChatId, document: FileInput, caption: Optional[str] = None, filename: Optional[str] = None, **options: Any) -> Dict[str, Any]:
        """Send a document by ``file_id``/URL, or upload it when given bytes."""
        payload: Dict[str, Any] = {"chat_id": str(chat_id), **options}
        if caption:
            payload["caption"] = caption
        return await self._send_file("sendDocument", "document", document, payload, filename)

    async def edit_message_text(self, text: str, message_id: int, chat_id: ChatId, **options: Any) -> Dict[str, Any]:
        return await self._call("editMessageText", {"text": text, "message_id": message_id, "chat_id": chat_id, **options})

    async def edit_message_caption(self, caption: str, message_id: Optional[int] = None, chat_id: Optional[ChatId] = None) -> Dict[str, Any]:
        return await self._call("editMessageCaption", {"caption": caption, "message_id": message_id, "chat_id": chat_id})

    async def edit_message_reply_markup(self, message_id: Optional[int] = None, chat_id: Optional[ChatId] = None, reply_markup: Any = None) -> Dict[str, Any]:
        return await self._call("editMessageReplyMarkup", {"message_id": message_id, "chat_id": chat_id, "reply_markup": reply_markup})

    async def delete_message(self, chat_id: ChatId, message_id: int) -> Dict[str, Any]:
        return await self._call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None, show_alert: Optional[bool] = None) -> Dict[str, Any]:
        """Acknowledge a callback query so the spinner disappears for the user."""
        return await self._call("answerCallbackQuery", {"callback_query_id": callback_query_id, "text": text, "show_alert": show_alert})

    async def get_chat(self, chat_id: ChatId) -> Dict[str, Any]:
        return await self._call("getChat", {"chat_id": chat_id})

    # ------------------------------------------------------------------
    #  Files
    # ------------------------------------------------------------------

    async def get_file(self, file_id: str) -> Dict[str, Any]:
        """Resolve a ``file_id``; the result's ``file_path`` feeds :meth:`download_file`."""
        return await self._call("getFile", {"file_id": file_id})

    async def download_file(self, file_path: str, out: Sink) -> Dict[str, Any]:
        """Write the file at *file_path* to *out* (path or binary file object)."""
        return await self.transport.download(file_path, out)

    # ------------------------------------------------------------------
    #  Stickers
    # ------------------------------------------------------------------

    async def send_sticker(self, chat_id: ChatId, sticker: Union[str, InputSticker]) -> Dict[str, Any]:
        return await self._call("sendSticker", {"chat_id": chat_id, "sticker": sticker})

    async def get_sticker_set(self, name: str) -> Dict[str, Any]:
        return await self._call("getStickerSet", {"name": name})

    async def upload_sticker_file(self, user_id: Union[int, str], sticker: Union[bytes, InputFile], sticker_format: str = "static") -> Dict[str, Any]:
        """Upload a sticker file for later use in set creation or edits."""
        if isinstance(sticker, (bytes, bytearray)):
            sticker = InputFile(content=bytes(sticker))
        return await self._upload("uploadStickerFile", {"user_id": str(user_id), "sticker": sticker, "sticker_format": sticker_format})

    async def create_new_sticker_set(self, user_id: Union[int, str], name: str, title: str, stickers: List[InputSticker], sticker_type: str = "regular", files: Optional[Dict[str, InputFile]] = None) -> Dict[str, Any]:
        """Create a sticker set owned by *user_id*.

        Stickers referencing ``attach://<name>`` are satisfied from *files*,
        which travel as binary parts of the same multipart request.
        """
        payload: Dict[str, Any] = {
            "user_id": str(user_id),
            "name": name,
            "title": title,
            "stickers": stickers,
            "sticker_type": sticker_type,
        }
        if files:
            payload.update(files)
        return await self._upload("createNewStickerSet", payload)

    async def add_sticker_to_set(self, user_id: Union[int, str], name: str, sticker: InputSticker) -> Dict[str, Any]:
        return await self._call("addStickerToSet", {"user_id": user_id, "name": name, "sticker": sticker})

    async def replace_sticker_in_set(self, user_id: Union[int, str], name: str, old_sticker: str, sticker: InputSticker) -> Dict[str, Any]:
        return await self._call("replaceStickerInSet", {"user_id": user_id, "name": name, "old_sticker": old_sticker, "sticker": sticker})

    async def delete_sticker_from_set(self, sticker: str) -> Dict[str, Any]:
        return await self._call("deleteStickerFromSet", {"sticker": sticker})

    async def delete_sticker_set(self, name: str) -> Dict[str, Any]:
        return await self._call("deleteStickerSet", {"name": name})

    async def set_sticker_set_title(self, name: str, title: str) -> Dict[str, Any]:
        return await self._call("setStickerSetTitle", {"name": name, "title": title})

    # ------------------------------------------------------------------
    #  Payments
    # ------------------------------------------------------------------

    async def send_invoice(self, chat_id: ChatId, title: str, description: str, payload: str, currency: str, prices: List[LabeledPrice], provider_token: Optional[str] = None, **options: Any) -> Dict[str, Any]:
        """Send an invoice. *provider_token* may be omitted for Telegram Stars."""
        params: Dict[str, Any] = {
            "chat_id": chat_id,
            "title": title,
            "description": description,
            "payload": payload,
            "currency": currency,
            "prices": prices,
            **options,
        }
        if provider_token is not None:
            params["provider_token"] = provider_token
        return await self._call("sendInvoice", params)

    async def answer_pre_checkout_query(self, pre_checkout_query_id: str, ok: bool, error_message: Optional[str] = None) -> Dict[str, Any]:
        """Confirm (``ok=True``) or reject a pre-checkout query."""
        return await self._call("answerPreCheckoutQuery", {"pre_checkout_query_id": pre_checkout_query_id, "ok": ok, "error_message": error_message})
