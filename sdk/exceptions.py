"""Exception hierarchy for the Telepoll SDK.

Transport failures and remote rejections are raised inside
:mod:`sdk.transport` and turned into error envelopes at its boundary, so
user-facing calls never raise them.  :class:`ClassificationGap` and
:class:`DecorationError` are raised by the polling pipeline and handled by
the poll loop.
"""

from typing import Any, Dict, Optional

# Error code the API returns while another poller (or a webhook) holds the
# update stream.
CONFLICT_ERROR_CODE = 409


class TelepollError(Exception):
    """Base class for every error raised by this library."""


class TransportError(TelepollError):
    """The request never produced a usable API response.

    Attributes:
        kind: ``"timeout"``, ``"network"`` or ``"decode"``.
        detail: Human-readable description of the underlying failure.
    """

    retryable = True

    def __init__(self, kind: str, detail: str) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind} error: {detail}")

    def to_envelope(self) -> Dict[str, Any]:
        return {"ok": False, "error_code": None, "description": self.detail, "error_kind": self.kind}


class RemoteError(TelepollError):
    """The API answered with ``ok: false``.

    Attributes:
        error_code: Numeric error code reported by the API.
        description: Error description reported by the API.
        response_body: Raw response body as a dict.
    """

    def __init__(self, error_code: Optional[int], description: Optional[str] = None, response_body: Optional[Dict[str, Any]] = None) -> None:
        self.error_code = error_code
        self.description = description or "Unknown error"
        self.response_body = response_body or {}
        super().__init__(f"API error {error_code}: {self.description}")

    @property
    def is_conflict(self) -> bool:
        """True when another consumer is already reading updates."""
        return self.error_code == CONFLICT_ERROR_CODE

    @property
    def retryable(self) -> bool:
        return self.is_conflict

    def to_envelope(self) -> Dict[str, Any]:
        envelope = dict(self.response_body)
        envelope.update(
            ok=False,
            error_code=self.error_code,
            description=self.description,
            error_kind="remote",
        )
        return envelope


class ClassificationGap(TelepollError):
    """An update carries none of the shapes the classifier understands."""

    def __init__(self, update_id: Optional[int]) -> None:
        self.update_id = update_id
        super().__init__(f"Unrecognised update shape (update_id={update_id})")


class DecorationError(TelepollError):
    """A record lacks the identity fields needed to bind its actions."""
