"""Framework-agnostic core — logging and the update cursor.

This package must NEVER import from ``bot/`` or ``sdk/``.
"""

from core.cursor import AdmitResult, AdmitStatus, UpdateCursor
from core.logger import TelepollLogger

__all__ = [
    "AdmitResult",
    "AdmitStatus",
    "UpdateCursor",
    "TelepollLogger",
]
