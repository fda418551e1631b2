"""Tests for the poll loop, the identity probe and the bot facade."""

import asyncio
import os
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from bot.application import TelepollBot
from bot.classifier import CommandEvent
from bot.decorator import DecoratedMessage
from bot.events import EventRegistry
from bot.poller import LoopState, PollLoop
from sdk.client import TelepollClient

CHAT = {"id": 42, "type": "private"}
ME = {"id": 1, "is_bot": True, "first_name": "Poller", "username": "poller_bot"}


def _ok(result):
    return {"ok": True, "result": result}


def _command_update(update_id: int, text: str = "/start foo") -> dict:
    return {
        "update_id": update_id,
        "message": {
            "message_id": 5,
            "date": 0,
            "chat": CHAT,
            "from": {"id": 7, "first_name": "Ada"},
            "text": text,
            "entities": [{"type": "bot_command", "offset": 0, "length": len(text.split()[0])}],
        },
    }


@pytest.fixture()
def client() -> MagicMock:
    c = MagicMock(spec=TelepollClient)
    c.get_updates = AsyncMock(return_value=_ok([]))
    c.get_me = AsyncMock(return_value=_ok(ME))
    c.send_message = AsyncMock(return_value=_ok({"message_id": 6, "chat": CHAT}))
    return c


# ── tick ─────────────────────────────────────────────────────────────────────


class TestTick:
    """One fetch → admit → classify → decorate → emit cycle."""

    @pytest.mark.asyncio
    async def test_command_emitted_once(self, client) -> None:
        client.get_updates.return_value = _ok([_command_update(100)])
        events = EventRegistry()
        received = []
        events.add_listener("command", received.append)
        loop = PollLoop(client, events)

        first = await loop.tick()
        second = await loop.tick()

        assert isinstance(first, CommandEvent)
        assert second is None
        assert len(received) == 1
        event = received[0]
        assert event.command == "start"
        assert event.args == ("foo",)
        assert isinstance(event.message, DecoratedMessage)
        assert event.message.chat_id == 42

    @pytest.mark.asyncio
    async def test_offset_acknowledges_head(self, client) -> None:
        client.get_updates.return_value = _ok([_command_update(100), _command_update(101)])
        loop = PollLoop(client, EventRegistry(), offset=True)

        await loop.tick()

        client.get_updates.assert_any_await(offset=101)
        assert loop.cursor.position == 100

    @pytest.mark.asyncio
    async def test_no_acknowledgement_without_offset(self, client) -> None:
        client.get_updates.return_value = _ok([_command_update(100)])
        loop = PollLoop(client, EventRegistry(), offset=False)

        await loop.tick()

        client.get_updates.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_listener_can_reply(self, client) -> None:
        client.get_updates.return_value = _ok([_command_update(100)])
        events = EventRegistry()

        @events.on("command")
        async def on_command(event):
            await event.message.reply("hi")

        await PollLoop(client, events).tick()

        client.send_message.assert_awaited_once_with(42, "hi")

    @pytest.mark.asyncio
    async def test_conflict_is_silent(self, client) -> None:
        client.get_updates.return_value = {"ok": False, "error_code": 409, "description": "Conflict", "error_kind": "remote"}
        listener = MagicMock()
        events = EventRegistry()
        events.add_listener("update", listener)
        loop = PollLoop(client, events)

        assert await loop.tick() is None
        assert loop.cursor.position is None
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_flood_control_stretches_next_wait(self, client) -> None:
        client.get_updates.return_value = {
            "ok": False,
            "error_code": 429,
            "description": "Too Many Requests: retry after 30",
            "parameters": {"retry_after": 30},
            "error_kind": "remote",
        }
        loop = PollLoop(client, EventRegistry(), interval=5.0)

        assert await loop.tick() is None
        assert loop._next_delay() == 30.0
        assert loop._next_delay() == 5.0

    @pytest.mark.asyncio
    async def test_head_without_update_id_skipped(self, client) -> None:
        client.get_updates.return_value = _ok([{"message": {"message_id": 1, "chat": CHAT}}])
        loop = PollLoop(client, EventRegistry())

        assert await loop.tick() is None
        assert loop.cursor.position is None

    @pytest.mark.asyncio
    async def test_transport_failure_is_not_fatal(self, client) -> None:
        client.get_updates.return_value = {"ok": False, "error_code": None, "description": "offline", "error_kind": "network"}
        assert await PollLoop(client, EventRegistry()).tick() is None

    @pytest.mark.asyncio
    async def test_unrecognised_update_skipped(self, client) -> None:
        client.get_updates.return_value = _ok([{"update_id": 200, "poll": {"id": "p"}}])
        loop = PollLoop(client, EventRegistry())

        assert await loop.tick() is None
        assert loop.cursor.position == 200

    @pytest.mark.asyncio
    async def test_message_without_chat_dropped(self, client) -> None:
        client.get_updates.return_value = _ok([{"update_id": 300, "message": {"message_id": 1, "text": "x"}}])
        assert await PollLoop(client, EventRegistry()).tick() is None

    @pytest.mark.asyncio
    async def test_invalid_callback_dropped(self, client) -> None:
        client.get_updates.return_value = _ok([{"update_id": 301, "callback_query": {"id": "cb"}}])
        assert await PollLoop(client, EventRegistry()).tick() is None

    @pytest.mark.asyncio
    async def test_next_update_after_malformed_one(self, client) -> None:
        client.get_updates.side_effect = [
            _ok([{"update_id": 300, "message": {"message_id": 1}}]),
            _ok([_command_update(301)]),
        ]
        loop = PollLoop(client, EventRegistry(), offset=False)

        assert await loop.tick() is None
        assert isinstance(await loop.tick(), CommandEvent)


# ── Lifecycle ────────────────────────────────────────────────────────────────


class TestLifecycle:
    """Identity probe, start and stop."""

    @pytest.mark.asyncio
    async def test_identity_probe_retries_then_fires_ready(self, client) -> None:
        client.get_me.side_effect = [
            {"ok": False, "error_code": None, "description": "offline", "error_kind": "network"},
            _ok(ME),
        ]
        events = EventRegistry()
        ready = asyncio.Event()
        seen = []

        @events.on("ready")
        def on_ready(me):
            seen.append(me)
            ready.set()

        loop = PollLoop(client, events, retry_interval=0.01)
        loop.start(poll=False)
        await asyncio.wait_for(ready.wait(), timeout=1)
        await loop.stop()

        assert loop.identity.username == "poller_bot"
        assert len(seen) == 1
        assert client.get_me.await_count == 2
        client.get_updates.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_and_stop(self, client) -> None:
        loop = PollLoop(client, EventRegistry(), interval=0.01)
        loop.start()
        assert loop.state is LoopState.POLLING
        await asyncio.sleep(0.05)
        await loop.stop()
        await loop.stop()

        assert loop.state is LoopState.IDLE
        assert client.get_updates.await_count >= 1

    @pytest.mark.asyncio
    async def test_failing_tick_keeps_loop_alive(self, client) -> None:
        client.get_updates.side_effect = RuntimeError("boom")
        loop = PollLoop(client, EventRegistry(), interval=0.01)
        loop.start()
        await asyncio.sleep(0.05)
        await loop.stop()

        assert client.get_updates.await_count >= 2

    @pytest.mark.asyncio
    async def test_stop_from_command_listener_returns(self, client) -> None:
        client.get_updates.return_value = _ok([_command_update(100, "/shutdown")])
        events = EventRegistry()
        loop = PollLoop(client, events, interval=0.01)
        done = asyncio.Event()
        after = []

        @events.on("command")
        async def on_shutdown(event):
            await loop.stop()
            after.append("returned")
            done.set()

        loop.start()
        await asyncio.wait_for(done.wait(), timeout=1)

        assert after == ["returned"]
        assert loop.state is LoopState.IDLE

        await asyncio.wait_for(loop.stop(), timeout=1)
        assert client.get_updates.await_count == 2  # one fetch plus its acknowledgement

    @pytest.mark.asyncio
    async def test_stop_from_ready_listener_returns(self, client) -> None:
        events = EventRegistry()
        loop = PollLoop(client, events, interval=0.01)
        done = asyncio.Event()

        @events.on("ready")
        async def on_ready(me):
            await loop.stop()
            done.set()

        loop.start()
        await asyncio.wait_for(done.wait(), timeout=1)
        await asyncio.wait_for(loop.stop(), timeout=1)

        assert loop.state is LoopState.IDLE

    @pytest.mark.asyncio
    async def test_restart_after_stop_from_listener(self, client) -> None:
        events = EventRegistry()
        loop = PollLoop(client, events, interval=0.01)
        stopped = asyncio.Event()

        @events.on("ready")
        async def on_ready(me):
            await loop.stop()
            stopped.set()

        loop.start(poll=False)
        await asyncio.wait_for(stopped.wait(), timeout=1)
        await asyncio.sleep(0.01)

        loop.start()
        assert loop.state is LoopState.POLLING
        await loop.stop()


# ── Facade ───────────────────────────────────────────────────────────────────


class TestTelepollBot:

    def test_wires_poller(self) -> None:
        bot = TelepollBot("123:ABC", interval=1.5, offset=False)
        assert bot.poller._interval == 1.5
        assert bot.poller._offset is False
        assert bot.identity is None

    def test_on_registers_listener(self) -> None:
        bot = TelepollBot("123:ABC")

        @bot.on("callback")
        def handler(event):
            return None

        assert bot.events.listeners("callback") == [handler]

    @pytest.mark.asyncio
    async def test_run_forever_requires_stream(self) -> None:
        bot = TelepollBot("123:ABC", stream=False)
        with pytest.raises(RuntimeError):
            await bot.run_forever()

    @pytest.mark.asyncio
    async def test_context_manager_probes_identity(self) -> None:
        bot = TelepollBot("123:ABC", stream=False)
        bot.get_me = AsyncMock(return_value=_ok(ME))
        ready = asyncio.Event()
        bot.on("ready")(lambda me: ready.set())

        async with bot:
            await asyncio.wait_for(ready.wait(), timeout=1)

        assert bot.identity.id == 1

    def test_from_env_requires_token(self) -> None:
        import config

        with patch.object(config, "BOT_TOKEN", None):
            with pytest.raises(EnvironmentError):
                TelepollBot.from_env()

    def test_from_env_overrides(self) -> None:
        import config

        with patch.object(config, "BOT_TOKEN", "123:ABC"):
            bot = TelepollBot.from_env(interval=2.0, stream=False)
        assert bot.poller._interval == 2.0
        assert bot.stream is False
