"""Update cursor — decides whether a fetched batch carries anything new.

Only the head of the latest ``getUpdates`` batch is ever considered.  Older
queued updates behind it are skipped rather than drained one by one; callers
that need every update under bursty traffic must not rely on this cursor.
The position lives in memory only, so nothing survives a restart.
"""

from __future__ import annotations

import dataclasses
import enum
from typing import Any, Awaitable, Callable, Mapping, Sequence

from core.logger import TelepollLogger

logger = TelepollLogger.get_logger()

# Called with the offset that acknowledges the head update (``head_id + 1``).
Acknowledge = Callable[[int], Awaitable[Any]]


class AdmitStatus(enum.Enum):
    EMPTY = "empty"
    STALE = "stale"
    FRESH = "fresh"


@dataclasses.dataclass(frozen=True, slots=True)
class AdmitResult:
    """Outcome of :meth:`UpdateCursor.admit`.

    ``update`` is the head raw update for ``FRESH`` results and ``None``
    otherwise.
    """
    status: AdmitStatus
    update: Mapping[str, Any] | None = None

    @property
    def is_fresh(self) -> bool:
        return self.status is AdmitStatus.FRESH


EMPTY = AdmitResult(AdmitStatus.EMPTY)
STALE = AdmitResult(AdmitStatus.STALE)


class UpdateCursor:
    """Single-writer tracker of the last admitted ``update_id``."""

    def __init__(self, acknowledge: Acknowledge | None = None) -> None:
        self._position: int | None = None
        self._acknowledge = acknowledge

    @property
    def position(self) -> int | None:
        """Last admitted update id, or ``None`` before the first admission."""
        return self._position

    async def admit(self, batch: Sequence[Mapping[str, Any]], offset: bool = False) -> AdmitResult:
        """Classify *batch* as empty, stale or fresh by looking at its head.

        A head id at or below the stored position is stale, so the position
        never moves backwards.  With *offset* set and a non-empty batch, one
        acknowledgement call is made for ``head_id + 1``; its result is
        discarded.
        """
        if not batch:
            return EMPTY

        head = batch[0]
        try:
            head_id = int(head["update_id"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Head update has no usable update_id", extra={"head": head})
            return STALE

        if offset and self._acknowledge is not None:
            await self._send_acknowledgement(self._acknowledge, head_id + 1)

        if self._position is not None and head_id <= self._position:
            logger.debug("Head update already admitted", extra={"update_id": head_id, "cursor": self._position})
            return STALE

        self._position = head_id
        if len(batch) > 1:
            logger.debug("Skipping queued updates behind head", extra={"update_id": head_id, "skipped": len(batch) - 1})
        return AdmitResult(AdmitStatus.FRESH, head)

    @staticmethod
    async def _send_acknowledgement(acknowledge: Acknowledge, next_offset: int) -> None:
        try:
            await acknowledge(next_offset)
        except Exception as exc:
            logger.warning("Offset acknowledgement failed", extra={"offset": next_offset, "error": str(exc)})
