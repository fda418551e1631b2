"""TelepollBot — the client plus polling, events and lifecycle in one object.

Usage::

    bot = TelepollBot(token)

    @bot.on("command")
    async def on_command(event):
        if event.command == "start":
            await event.message.reply("Hi!")

    async with bot:
        await bot.run_forever()
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from core.logger import TelepollLogger
from sdk.client import TelepollClient
from sdk.models import User
from sdk.transport import DEFAULT_HOST, DEFAULT_TIMEOUT

from bot.events import EventName, EventRegistry, Listener
from bot.poller import DEFAULT_INTERVAL, DEFAULT_RETRY_INTERVAL, PollLoop

logger = TelepollLogger.get_logger()


class TelepollBot(TelepollClient):
    """A :class:`~sdk.client.TelepollClient` that also polls and emits events.

    With *stream* disabled, :meth:`start` only resolves the bot identity
    (and fires ``ready``); no updates are fetched.
    """

    def __init__(
        self,
        token: str,
        interval: Optional[float] = None,
        stream: bool = True,
        offset: bool = True,
        host: str = DEFAULT_HOST,
        timeout: float = DEFAULT_TIMEOUT,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
    ) -> None:
        super().__init__(token, host=host, timeout=timeout)
        self.stream = stream
        self.events = EventRegistry()
        self.poller = PollLoop(
            self,
            self.events,
            interval=DEFAULT_INTERVAL if interval is None else interval,
            offset=offset,
            retry_interval=retry_interval,
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> "TelepollBot":
        """Build a bot from :mod:`config` (``BOT_TOKEN``, ``POLL_INTERVAL`` …).

        Raises:
            EnvironmentError: If ``BOT_TOKEN`` is not set.
        """
        import config  # deferred so importing the library never reads .env

        if not config.BOT_TOKEN:
            raise EnvironmentError("BOT_TOKEN environment variable is not set or is empty.")
        settings: dict[str, Any] = {
            "interval": config.POLL_INTERVAL,
            "offset": config.POLL_OFFSET,
            "host": config.API_HOST,
            "timeout": config.REQUEST_TIMEOUT,
            "retry_interval": config.READY_RETRY_INTERVAL,
        }
        settings.update(overrides)
        return cls(config.BOT_TOKEN, **settings)

    @property
    def identity(self) -> Optional[User]:
        """The bot's own user record once ``getMe`` has succeeded."""
        return self.poller.identity

    def on(self, event: EventName) -> Callable[[Listener], Listener]:
        """Decorator subscribing a listener to *event*."""
        return self.events.on(event)

    def start(self) -> None:
        self.poller.start(poll=self.stream)

    async def stop(self) -> None:
        await self.poller.stop()

    async def run_forever(self) -> None:
        """Poll until :meth:`stop` is called."""
        if not self.stream:
            raise RuntimeError("run_forever() needs a streaming bot")
        await self.poller.run_forever()

    async def __aenter__(self) -> "TelepollBot":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
