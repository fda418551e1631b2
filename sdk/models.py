"""Pydantic models for the subset of the Telegram Bot API this library handles.

Inbound records (updates, messages, users, chats, queries) accept unknown
fields so newer API additions survive parsing untouched.  ``Message.chat`` and
``Message.message_id`` are optional at the model level; the decorator is the
place that insists on them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

_INBOUND = {"populate_by_name": True, "extra": "allow"}


class ResponseParameters(BaseModel):
    """Describes why a request was unsuccessful."""

    migrate_to_chat_id: Optional[int] = None
    retry_after: Optional[int] = None

    model_config = {"populate_by_name": True}


class Error(BaseModel):
    """Error envelope returned by the API (or synthesised by the transport)."""

    ok: bool = False
    error_code: Optional[int] = None
    description: str = ""
    error_kind: Optional[str] = None
    parameters: Optional[ResponseParameters] = None

    model_config = {"populate_by_name": True}


class User(BaseModel):
    """This object represents a Telegram user or bot."""

    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    is_premium: Optional[bool] = None
    can_join_groups: Optional[bool] = None

    model_config = _INBOUND


class Chat(BaseModel):
    """This object represents a chat."""

    id: int
    type: str
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_forum: Optional[bool] = None

    model_config = _INBOUND

    @property
    def is_group_like(self) -> bool:
        return self.type in ("group", "supergroup", "channel")


class MessageEntity(BaseModel):
    """One special entity in a text message (hashtag, URL, bot command, ...)."""

    type: str
    offset: int
    length: int
    url: Optional[str] = None
    user: Optional[User] = None
    language: Optional[str] = None

    model_config = _INBOUND


class PhotoSize(BaseModel):
    """One size of a photo or a file / sticker thumbnail."""

    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: Optional[int] = None

    model_config = _INBOUND


class Animation(BaseModel):
    file_id: str
    file_unique_id: str
    width: int
    height: int
    duration: int
    thumbnail: Optional[PhotoSize] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = _INBOUND


class Document(BaseModel):
    file_id: str
    file_unique_id: str
    thumbnail: Optional[PhotoSize] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = _INBOUND


class Video(BaseModel):
    file_id: str
    file_unique_id: str
    width: int
    height: int
    duration: int
    thumbnail: Optional[PhotoSize] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = _INBOUND


class MaskPosition(BaseModel):
    """Position on faces where a mask should be placed by default."""

    point: str
    x_shift: float
    y_shift: float
    scale: float

    model_config = {"populate_by_name": True}


class Sticker(BaseModel):
    """This object represents a sticker."""

    file_id: str
    file_unique_id: str
    type: str = "regular"
    width: int
    height: int
    is_animated: bool = False
    is_video: bool = False
    thumbnail: Optional[PhotoSize] = None
    emoji: Optional[str] = None
    set_name: Optional[str] = None
    mask_position: Optional[MaskPosition] = None
    custom_emoji_id: Optional[str] = None
    file_size: Optional[int] = None

    model_config = _INBOUND


class StickerSet(BaseModel):
    """This object represents a sticker set."""

    name: str
    title: str
    sticker_type: str = "regular"
    stickers: List[Sticker] = []
    thumbnail: Optional[PhotoSize] = None

    model_config = _INBOUND


class InputSticker(BaseModel):
    """Describes a sticker to be added to a sticker set.

    ``sticker`` is a ``file_id``, an HTTP URL, or ``attach://<name>`` when
    the file travels as a multipart part of the same request.
    """

    sticker: str
    format: str = "static"
    emoji_list: List[str]
    mask_position: Optional[MaskPosition] = None
    keywords: Optional[List[str]] = None

    model_config = {"populate_by_name": True}


class File(BaseModel):
    """A file ready to be downloaded via ``https://<host>/file/bot<token>/<file_path>``."""

    file_id: str
    file_unique_id: str
    file_size: Optional[int] = None
    file_path: Optional[str] = None

    model_config = _INBOUND


class InputFile(BaseModel):
    """Raw bytes to upload as a multipart part, with an optional filename."""

    content: bytes
    filename: Optional[str] = None

    model_config = {"populate_by_name": True}


class InlineKeyboardButton(BaseModel):
    """One button of an inline keyboard. Exactly one optional field is used."""

    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = None

    model_config = _INBOUND


class InlineKeyboardMarkup(BaseModel):
    """An inline keyboard that appears right next to the message it belongs to."""

    inline_keyboard: List[List[InlineKeyboardButton]]

    model_config = {"populate_by_name": True}


class LabeledPrice(BaseModel):
    """A portion of the price for goods or services."""

    label: str
    amount: int

    model_config = {"populate_by_name": True}


class Invoice(BaseModel):
    title: str
    description: str
    start_parameter: str
    currency: str
    total_amount: int

    model_config = _INBOUND


class ShippingAddress(BaseModel):
    country_code: str
    state: str
    city: str
    street_line1: str
    street_line2: str
    post_code: str

    model_config = _INBOUND


class OrderInfo(BaseModel):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None

    model_config = _INBOUND


class SuccessfulPayment(BaseModel):
    currency: str
    total_amount: int
    invoice_payload: str
    telegram_payment_charge_id: str
    provider_payment_charge_id: str
    shipping_option_id: Optional[str] = None
    order_info: Optional[OrderInfo] = None

    model_config = _INBOUND


class Message(BaseModel):
    """This object represents a message."""

    message_id: Optional[int] = None
    date: int = 0
    chat: Optional[Chat] = None
    from_field: Optional[User] = Field(None, alias="from")
    sender_chat: Optional[Chat] = None
    reply_to_message: Optional["Message"] = None
    edit_date: Optional[int] = None
    media_group_id: Optional[str] = None
    text: Optional[str] = None
    entities: Optional[List[MessageEntity]] = None
    caption: Optional[str] = None
    caption_entities: Optional[List[MessageEntity]] = None
    animation: Optional[Animation] = None
    document: Optional[Document] = None
    photo: Optional[List[PhotoSize]] = None
    sticker: Optional[Sticker] = None
    video: Optional[Video] = None
    invoice: Optional[Invoice] = None
    successful_payment: Optional[SuccessfulPayment] = None
    reply_markup: Optional[InlineKeyboardMarkup] = None

    model_config = _INBOUND


class CallbackQuery(BaseModel):
    """An incoming callback query from a callback button in an inline keyboard."""

    id: str
    from_field: User = Field(..., alias="from")
    chat_instance: str = ""
    message: Optional[Message] = None
    inline_message_id: Optional[str] = None
    data: Optional[str] = None
    game_short_name: Optional[str] = None

    model_config = _INBOUND


class PreCheckoutQuery(BaseModel):
    """An incoming pre-checkout query; it must be answered within 10 seconds."""

    id: str
    from_field: User = Field(..., alias="from")
    currency: str
    total_amount: int
    invoice_payload: str
    shipping_option_id: Optional[str] = None
    order_info: Optional[OrderInfo] = None

    model_config = _INBOUND


class Update(BaseModel):
    """An incoming update. At most **one** of the optional parameters is present."""

    update_id: int
    message: Optional[Message] = None
    edited_message: Optional[Message] = None
    callback_query: Optional[CallbackQuery] = None
    pre_checkout_query: Optional[PreCheckoutQuery] = None

    model_config = _INBOUND


def dump(model: BaseModel) -> Dict[str, Any]:
    """Serialise *model* the way the API expects it (aliases, no nulls)."""
    return model.model_dump(by_alias=True, exclude_none=True)
