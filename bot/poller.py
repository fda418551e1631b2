"""Poll loop — fetch, admit, classify, decorate and emit on a fixed interval.

The loop is a single self-rescheduling task: each tick runs to completion
before the interval wait starts, so fetches never overlap and the cursor has
exactly one writer.  A separate identity probe calls ``getMe`` until it
succeeds and then fires ``ready`` once.  Both tasks watch the same stop event.
"""

from __future__ import annotations

import asyncio
import enum
from typing import Optional

from pydantic import ValidationError

from core.cursor import UpdateCursor
from core.logger import TelepollLogger
from sdk.client import TelepollClient
from sdk.exceptions import CONFLICT_ERROR_CODE, ClassificationGap, DecorationError
from sdk.models import Error, Update, User

from bot.classifier import NormalizedEvent, classify
from bot.decorator import Decorator
from bot.events import EventRegistry

logger = TelepollLogger.get_logger()

DEFAULT_INTERVAL = 5.0
DEFAULT_RETRY_INTERVAL = 5.0


class LoopState(enum.Enum):
    IDLE = "idle"
    POLLING = "polling"


class PollLoop:
    """Drives the update pipeline for one client.

    Args:
        client: Client used for ``getUpdates``, ``getMe`` and by decorated
            records.
        events: Registry receiving the emitted events.
        interval: Seconds between the end of one tick and the next.
        offset: Acknowledge each fetched head so the server drops it.
        retry_interval: Seconds between failed identity probes.
    """

    def __init__(
        self,
        client: TelepollClient,
        events: EventRegistry,
        interval: float = DEFAULT_INTERVAL,
        offset: bool = True,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
    ) -> None:
        self._client = client
        self._events = events
        self._interval = interval
        self._offset = offset
        self._retry_interval = retry_interval
        self._cursor = UpdateCursor(acknowledge=self._acknowledge)
        self._decorator = Decorator(client)
        self._stop = asyncio.Event()
        self._tasks: list[asyncio.Task] = []
        self._state = LoopState.IDLE
        self._retry_after: Optional[float] = None
        self.identity: Optional[User] = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def cursor(self) -> UpdateCursor:
        return self._cursor

    # ── lifecycle ────────────────────────────────────────────────────────

    def start(self, poll: bool = True) -> None:
        """Schedule the identity probe and, with *poll*, the polling task.

        Must be called from a running event loop.  Calling it again while
        tasks are alive does nothing.
        """
        if any(not task.done() for task in self._tasks):
            return
        self._tasks = []
        self._stop.clear()
        if self.identity is None:
            self._tasks.append(asyncio.create_task(self._probe_identity(), name="telepoll-identity"))
        if poll:
            self._tasks.append(asyncio.create_task(self._run(), name="telepoll-poll"))
            self._state = LoopState.POLLING

    async def stop(self) -> None:
        """Signal both tasks to finish and wait for them. Idempotent.

        Safe to await from a listener: the task running the caller is not
        waited on; it stays tracked until it finishes, so a later
        :meth:`stop` from outside still waits for it.
        """
        self._stop.set()
        current = asyncio.current_task()
        others = [task for task in self._tasks if task is not current]
        self._tasks = [task for task in self._tasks if task is current]
        if others:
            await asyncio.gather(*others, return_exceptions=True)
        self._state = LoopState.IDLE

    async def run_forever(self) -> None:
        """Start and block until :meth:`stop` is called from elsewhere."""
        self.start()
        await self._stop.wait()
        await self.stop()

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return True if stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    # ── polling ──────────────────────────────────────────────────────────

    async def _run(self) -> None:
        logger.info("Polling started", extra={"interval": self._interval, "offset": self._offset})
        while not self._stop.is_set():
            try:
                await self.tick()
            except Exception:
                logger.exception("Poll tick failed")
            if await self._wait(self._next_delay()):
                break
        logger.info("Polling stopped", extra={"cursor": self._cursor.position})

    def _next_delay(self) -> float:
        """The poll interval, stretched to any ``retry_after`` the API asked for."""
        retry_after, self._retry_after = self._retry_after, None
        if retry_after is not None and retry_after > self._interval:
            return retry_after
        return self._interval

    async def _acknowledge(self, offset: int) -> None:
        await self._client.get_updates(offset=offset)

    async def tick(self) -> Optional[NormalizedEvent]:
        """Run one fetch → admit → classify → decorate → emit cycle.

        Returns the emitted event, or ``None`` when nothing was emitted.
        """
        response = await self._client.get_updates()
        if not response.get("ok"):
            error = Error.model_validate(response)
            if error.parameters is not None and error.parameters.retry_after:
                self._retry_after = float(error.parameters.retry_after)
            if error.error_code == CONFLICT_ERROR_CODE:
                logger.debug("Another consumer holds the update stream", extra={"api_endpoint": "getUpdates"})
            else:
                logger.warning("getUpdates failed", extra={"api_endpoint": "getUpdates", "api_response": response, "retry_in": self._retry_after})
            return None

        admitted = await self._cursor.admit(response.get("result") or [], offset=self._offset)
        if not admitted.is_fresh:
            return None

        raw = admitted.update
        update_id = raw.get("update_id") if raw else None
        try:
            event = self._decorator.decorate(classify(Update.model_validate(raw)))
        except ClassificationGap:
            logger.debug("Skipping unrecognised update", extra={"update_id": update_id, "keys": sorted(raw or ())})
            return None
        except (ValidationError, DecorationError) as exc:
            logger.warning("Dropping malformed update", extra={"update_id": update_id, "error": str(exc)})
            return None

        logger.debug("Emitting event", extra={"update_id": update_id, "event": event.kind})
        await self._events.emit(event.kind, event)
        return event

    # ── identity probe ───────────────────────────────────────────────────

    async def _probe_identity(self) -> None:
        while not self._stop.is_set():
            response = await self._client.get_me()
            if response.get("ok"):
                try:
                    identity = User.model_validate(response.get("result"))
                except ValidationError as exc:
                    logger.warning("getMe returned an unexpected payload", extra={"api_endpoint": "getMe", "error": str(exc)})
                else:
                    self.identity = identity
                    logger.info("Bot identity resolved", extra={"bot_id": identity.id, "username": identity.username})
                    await self._events.emit("ready", identity)
                    return
            else:
                logger.warning("Identity probe failed, retrying", extra={"api_endpoint": "getMe", "retry_in": self._retry_interval, "api_response": response})
            if await self._wait(self._retry_interval):
                return
