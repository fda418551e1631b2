"""Tests for TelepollClient endpoint methods."""

import os
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sdk.client import MESSAGE_EFFECTS, TelepollClient
from sdk.models import InputFile, InputSticker, LabeledPrice
from sdk.transport import Transport


@pytest.fixture()
def transport() -> MagicMock:
    """A Transport double whose call/post coroutines return a success envelope."""
    t = MagicMock(spec=Transport)
    t.call = AsyncMock(return_value={"ok": True, "result": True})
    t.post = AsyncMock(return_value={"ok": True, "result": True})
    t.download = AsyncMock(return_value={"ok": True, "result": 3})
    return t


@pytest.fixture()
def client(transport: MagicMock) -> TelepollClient:
    return TelepollClient("123:ABC", transport=transport)


# ── Construction ─────────────────────────────────────────────────────────────


class TestClientInit:
    """Validate client initialisation."""

    def test_builds_transport(self) -> None:
        c = TelepollClient("123:ABC", host="api.example.com", timeout=30)
        assert isinstance(c.transport, Transport)
        assert c.transport.timeout == 30
        assert c.transport.method_url("getMe") == "https://api.example.com/bot123:ABC/getMe"


# ── Messages ─────────────────────────────────────────────────────────────────


class TestMessages:
    """Spot-check message endpoints."""

    @pytest.mark.asyncio
    async def test_send_message(self, client, transport) -> None:
        await client.send_message(42, "hello", parse_mode="HTML")
        transport.call.assert_awaited_once_with("sendMessage", {"chat_id": 42, "text": "hello", "parse_mode": "HTML"})

    @pytest.mark.asyncio
    async def test_send_message_effect_alias(self, client, transport) -> None:
        await client.send_message(42, "🔥", message_effect_id="fire")
        payload = transport.call.call_args.args[1]
        assert payload["message_effect_id"] == MESSAGE_EFFECTS["fire"]

    @pytest.mark.asyncio
    async def test_send_message_raw_effect_id_untouched(self, client, transport) -> None:
        await client.send_message(42, "x", message_effect_id="123")
        assert transport.call.call_args.args[1]["message_effect_id"] == "123"

    @pytest.mark.asyncio
    async def test_edit_message_text(self, client, transport) -> None:
        await client.edit_message_text("new", 7, 42, parse_mode="Markdown")
        transport.call.assert_awaited_once_with(
            "editMessageText", {"text": "new", "message_id": 7, "chat_id": 42, "parse_mode": "Markdown"}
        )

    @pytest.mark.asyncio
    async def test_edit_reply_markup(self, client, transport) -> None:
        markup = {"inline_keyboard": [[{"text": "A", "callback_data": "a"}]]}
        await client.edit_message_reply_markup(7, 42, markup)
        transport.call.assert_awaited_once_with(
            "editMessageReplyMarkup", {"message_id": 7, "chat_id": 42, "reply_markup": markup}
        )

    @pytest.mark.asyncio
    async def test_delete_message(self, client, transport) -> None:
        result = await client.delete_message(42, 7)
        assert result["ok"] is True
        transport.call.assert_awaited_once_with("deleteMessage", {"chat_id": 42, "message_id": 7})

    @pytest.mark.asyncio
    async def test_get_updates_omits_unset(self, client, transport) -> None:
        await client.get_updates()
        transport.call.assert_awaited_once_with("getUpdates", {})

    @pytest.mark.asyncio
    async def test_get_updates_with_offset(self, client, transport) -> None:
        await client.get_updates(offset=101)
        transport.call.assert_awaited_once_with("getUpdates", {"offset": 101})


# ── Media ────────────────────────────────────────────────────────────────────


class TestMedia:
    """GET for references, multipart for raw bytes."""

    @pytest.mark.asyncio
    async def test_send_photo_by_reference(self, client, transport) -> None:
        await client.send_photo(42, "AgACAgIAAxkB", caption="cat")
        transport.call.assert_awaited_once_with("sendPhoto", {"chat_id": "42", "photo": "AgACAgIAAxkB", "caption": "cat"})
        transport.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_photo_bytes_uploads(self, client, transport) -> None:
        await client.send_photo(42, b"\x89PNG")
        transport.call.assert_not_awaited()
        method, payload = transport.post.call_args.args
        assert method == "sendPhoto"
        assert payload["photo"] == InputFile(content=b"\x89PNG")

    @pytest.mark.asyncio
    async def test_send_document_bytes_with_filename(self, client, transport) -> None:
        await client.send_document(42, b"%PDF", caption="Q3", filename="report.pdf")
        method, payload = transport.post.call_args.args
        assert method == "sendDocument"
        assert payload["document"] == InputFile(content=b"%PDF", filename="report.pdf")
        assert payload["caption"] == "Q3"

    @pytest.mark.asyncio
    async def test_download_file_delegates(self, client, transport) -> None:
        sink = MagicMock()
        result = await client.download_file("documents/file_3.pdf", sink)
        assert result["result"] == 3
        transport.download.assert_awaited_once_with("documents/file_3.pdf", sink)


# ── Stickers ─────────────────────────────────────────────────────────────────


class TestStickers:
    """Sticker-set endpoints."""

    @pytest.mark.asyncio
    async def test_upload_sticker_file(self, client, transport) -> None:
        await client.upload_sticker_file(5, b"webp")
        method, payload = transport.post.call_args.args
        assert method == "uploadStickerFile"
        assert payload == {"user_id": "5", "sticker": InputFile(content=b"webp"), "sticker_format": "static"}

    @pytest.mark.asyncio
    async def test_create_new_sticker_set_with_attachment(self, client, transport) -> None:
        sticker = InputSticker(sticker="attach://s1", emoji_list=["😀"])
        await client.create_new_sticker_set(5, "pack_by_bot", "Pack", [sticker], files={"s1": InputFile(content=b"img")})
        method, payload = transport.post.call_args.args
        assert method == "createNewStickerSet"
        assert payload["stickers"] == [sticker]
        assert payload["s1"] == InputFile(content=b"img")
        assert payload["sticker_type"] == "regular"

    @pytest.mark.asyncio
    async def test_replace_sticker_in_set(self, client, transport) -> None:
        sticker = InputSticker(sticker="CAAC", emoji_list=["🙂"])
        await client.replace_sticker_in_set(5, "pack_by_bot", "OLD", sticker)
        transport.call.assert_awaited_once_with(
            "replaceStickerInSet", {"user_id": 5, "name": "pack_by_bot", "old_sticker": "OLD", "sticker": sticker}
        )

    @pytest.mark.asyncio
    async def test_set_sticker_set_title(self, client, transport) -> None:
        await client.set_sticker_set_title("pack_by_bot", "Renamed")
        transport.call.assert_awaited_once_with("setStickerSetTitle", {"name": "pack_by_bot", "title": "Renamed"})


# ── Payments ─────────────────────────────────────────────────────────────────


class TestPayments:
    """Invoice and pre-checkout endpoints."""

    @pytest.mark.asyncio
    async def test_send_invoice_without_provider_token(self, client, transport) -> None:
        prices = [LabeledPrice(label="Coffee", amount=300)]
        await client.send_invoice(42, "Coffee", "Hot", "order-1", "XTR", prices)
        payload = transport.call.call_args.args[1]
        assert "provider_token" not in payload
        assert payload["prices"] == prices

    @pytest.mark.asyncio
    async def test_answer_pre_checkout_query(self, client, transport) -> None:
        await client.answer_pre_checkout_query("pcq1", ok=False, error_message="Sold out")
        transport.call.assert_awaited_once_with(
            "answerPreCheckoutQuery", {"pre_checkout_query_id": "pcq1", "ok": False, "error_message": "Sold out"}
        )


# ── End to end through the real transport ────────────────────────────────────


class TestRejectedSend:
    """A remote rejection comes back as an envelope, never an exception."""

    @pytest.mark.asyncio
    @patch("sdk.transport.requests.get")
    async def test_rejected_chat_id(self, mock_get: MagicMock) -> None:
        resp = MagicMock()
        resp.ok = False
        resp.status_code = 400
        resp.json.return_value = {"ok": False, "error_code": 400, "description": "Bad Request: chat not found"}
        mock_get.return_value = resp

        c = TelepollClient("123:ABC")
        result = await c.send_message(-999, "hello")

        assert result["ok"] is False
        assert result["description"]

    def test_all_endpoint_methods_exist(self) -> None:
        c = TelepollClient("123:ABC")
        expected_methods = [
            "get_me", "get_updates", "send_message", "send_photo", "send_document",
            "edit_message_text", "edit_message_caption", "edit_message_reply_markup",
            "delete_message", "answer_callback_query", "get_chat", "get_file",
            "download_file", "send_sticker", "get_sticker_set", "upload_sticker_file",
            "create_new_sticker_set", "add_sticker_to_set", "replace_sticker_in_set",
            "delete_sticker_from_set", "delete_sticker_set", "set_sticker_set_title",
            "send_invoice", "answer_pre_checkout_query",
        ]
        for name in expected_methods:
            assert hasattr(c, name), f"Missing method: {name}"
