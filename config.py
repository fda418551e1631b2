"""Application configuration — environment variables and derived constants.

Loads ``BOT_TOKEN`` and the polling settings from the environment via
``python-dotenv``.  All values are resolved at import time so other modules
can ``from config import …`` without repeated lookups.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from core.logger import TelepollLogger

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()

logger = TelepollLogger.get_logger()


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_float(raw: str | None, default: float) -> float:
    """Parse a positive number of seconds, falling back to *default*."""
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric setting", extra={"value": raw, "default": default})
        return default
    return value if value > 0 else default


def _parse_bool(raw: str | None, default: bool) -> bool:
    """Accept ``1/0``, ``true/false``, ``yes/no`` and ``on/off`` (any case)."""
    if raw is None or not raw.strip():
        return default
    token = raw.strip().lower()
    if token in ("1", "true", "yes", "on"):
        return True
    if token in ("0", "false", "no", "off"):
        return False
    return default


# ── Public constants ─────────────────────────────────────────────────────────

BOT_TOKEN: str | None = os.environ.get("BOT_TOKEN")
API_HOST: str = os.environ.get("API_HOST") or "api.telegram.org"
POLL_INTERVAL: float = _parse_float(os.environ.get("POLL_INTERVAL"), 5.0)
READY_RETRY_INTERVAL: float = _parse_float(os.environ.get("READY_RETRY_INTERVAL"), 5.0)
REQUEST_TIMEOUT: float = _parse_float(os.environ.get("REQUEST_TIMEOUT"), 10.0)
POLL_OFFSET: bool = _parse_bool(os.environ.get("POLL_OFFSET"), True)


# ── Startup diagnostics ─────────────────────────────────────────────────────

if BOT_TOKEN:
    logger.info("Config loaded — BOT_TOKEN is set", extra={"api_host": API_HOST})
else:
    logger.warning("Config loaded — BOT_TOKEN is NOT set")

logger.info(
    "Polling settings resolved",
    extra={"poll_interval": POLL_INTERVAL, "ready_retry_interval": READY_RETRY_INTERVAL, "request_timeout": REQUEST_TIMEOUT, "poll_offset": POLL_OFFSET},
)
