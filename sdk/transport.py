"""HTTP transport for the Bot API — GET calls, multipart uploads, downloads.

Blocking :mod:`requests` calls run through :func:`asyncio.to_thread` so the
event loop stays free.  Every public coroutine returns the API envelope
(``{"ok": ..., "result": ...}``); transport failures and ``ok: false``
answers are converted to error envelopes here and never raised to callers.
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import IO, Any, Dict, Mapping, Optional, Tuple, Union

import requests
from pydantic import BaseModel

from core.logger import TelepollLogger
from sdk.exceptions import RemoteError, TransportError
from sdk.models import InputFile, dump

logger = TelepollLogger.get_logger()

DEFAULT_HOST = "api.telegram.org"
DEFAULT_TIMEOUT = 10
_DOWNLOAD_CHUNK = 64 * 1024

Sink = Union[str, "os.PathLike[str]", IO[bytes]]


async def make_request(method: str, url: str, **kwargs: object) -> requests.Response:
    """Run a :mod:`requests` call inside a thread to keep the event loop free.

    *method* is the HTTP verb (``"get"``, ``"post"``, …).
    """
    func = getattr(requests, method.lower())
    return await asyncio.to_thread(func, url, **kwargs)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return dump(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_value(value: Any) -> Union[str, int, float]:
    """Encode one parameter for a query string or a multipart form field.

    Scalars pass through; booleans and structured values (dicts, lists,
    pydantic models) become their compact JSON string.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, BaseModel):
        value = dump(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def encode_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Union[str, int, float]]:
    """Encode every non-``None`` parameter with :func:`encode_value`."""
    if not params:
        return {}
    return {key: encode_value(value) for key, value in params.items() if value is not None}


def split_multipart(params: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Tuple[str, bytes]]]:
    """Separate binary parts from ordinary form fields.

    ``InputFile`` values keep their filename (falling back to the field
    name); bare ``bytes`` are named after their field.
    """
    fields: Dict[str, Any] = {}
    files: Dict[str, Tuple[str, bytes]] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, InputFile):
            files[key] = (value.filename or key, value.content)
        elif isinstance(value, (bytes, bytearray)):
            files[key] = (key, bytes(value))
        else:
            fields[key] = encode_value(value)
    return fields, files


class Transport:
    """Authenticated access to ``https://<host>/bot<token>/<method>``."""

    def __init__(self, token: str, host: str = DEFAULT_HOST, timeout: float = DEFAULT_TIMEOUT) -> None:
        if not token:
            raise ValueError("A bot token is required")
        self._token = token
        self._host = host.rstrip("/")
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    def method_url(self, method: str) -> str:
        return f"https://{self._host}/bot{self._token}/{method.lstrip('/')}"

    def file_url(self, file_path: str) -> str:
        return f"https://{self._host}/file/bot{self._token}/{file_path.lstrip('/')}"

    # ------------------------------------------------------------------
    #  Public calls (never raise on transport / remote failure)
    # ------------------------------------------------------------------

    async def call(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """GET *method* with URL-encoded *params* and return the envelope."""
        query = encode_params(params)
        logger.debug("API call", extra={"api_endpoint": method, "params": sorted(query)})
        try:
            return await self._send("get", method, params=query)
        except (TransportError, RemoteError) as exc:
            return self._failure(method, exc)

    async def post(self, method: str, params: Mapping[str, Any]) -> Dict[str, Any]:
        """POST *method* as ``multipart/form-data`` and return the envelope."""
        fields, files = split_multipart(params)
        logger.debug("API upload", extra={"api_endpoint": method, "parts": sorted(files), "fields": sorted(fields)})
        try:
            if not files:
                # requests only builds multipart bodies when ``files`` is non-empty.
                return await self._send("post", method, files={key: (None, str(value)) for key, value in fields.items()})
            return await self._send("post", method, data=fields, files=files)
        except (TransportError, RemoteError) as exc:
            return self._failure(method, exc)

    async def download(self, file_path: str, out: Sink) -> Dict[str, Any]:
        """Stream ``file/bot<token>/<file_path>`` into *out*.

        *out* is a filesystem path or a writable binary file object.  The
        envelope's ``result`` is the number of bytes written.
        """
        url = self.file_url(file_path)
        try:
            written = await asyncio.to_thread(self._download_sync, url, out)
        except requests.Timeout as exc:
            return self._failure("download", TransportError("timeout", str(exc)))
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            return self._failure("download", RemoteError(status, str(exc)))
        except (requests.RequestException, OSError) as exc:
            return self._failure("download", TransportError("network", str(exc)))
        logger.info("File downloaded", extra={"api_endpoint": "download", "bytes": written})
        return {"ok": True, "result": written}

    # ------------------------------------------------------------------
    #  Internal helpers
    # ------------------------------------------------------------------

    async def _send(self, verb: str, method: str, **kwargs: Any) -> Dict[str, Any]:
        """Perform the request and return the body of a successful call.

        Raises:
            TransportError: On timeouts, connection failures and bodies that
                are not a JSON object.
            RemoteError: When the API reports ``ok: false`` or answers a
                non-2xx status without a usable body.
        """
        try:
            response = await make_request(verb, self.method_url(method), timeout=self._timeout, **kwargs)
        except requests.Timeout as exc:
            raise TransportError("timeout", str(exc)) from exc
        except requests.RequestException as exc:
            raise TransportError("network", str(exc)) from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            if response.ok:
                raise TransportError("decode", f"{method} returned a non-JSON body")
            raise RemoteError(response.status_code, f"HTTP {response.status_code}")

        if not body.get("ok"):
            raise RemoteError(body.get("error_code", response.status_code), body.get("description"), body)
        return body

    def _failure(self, method: str, exc: Union[TransportError, RemoteError]) -> Dict[str, Any]:
        envelope = exc.to_envelope()
        if isinstance(exc, RemoteError) and exc.is_conflict:
            logger.debug("API call conflicted", extra={"api_endpoint": method, "error_code": exc.error_code})
        elif isinstance(exc, RemoteError):
            logger.warning("API call rejected", extra={"api_endpoint": method, "error_code": exc.error_code, "description": exc.description})
        else:
            logger.error("API call failed", extra={"api_endpoint": method, "error_kind": exc.kind, "error": exc.detail})
        return envelope

    def _download_sync(self, url: str, out: Sink) -> int:
        with requests.get(url, stream=True, timeout=self._timeout) as response:
            response.raise_for_status()
            if isinstance(out, (str, os.PathLike)):
                with open(out, "wb") as fh:
                    return self._copy(response, fh)
            return self._copy(response, out)

    @staticmethod
    def _copy(response: requests.Response, fh: IO[bytes]) -> int:
        written = 0
        for chunk in response.iter_content(chunk_size=_DOWNLOAD_CHUNK):
            if chunk:
                fh.write(chunk)
                written += len(chunk)
        return written
