"""Append-only debug log shared by the ticket book and persistence layer."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from nightpos.config import DEBUG_LOG_PATH

_log_path = Path(DEBUG_LOG_PATH)


def set_log_path(path: str | Path) -> None:
    """Redirect the debug log, e.g. into a test's temporary directory."""
    global _log_path
    _log_path = Path(path)


def log_debug(message: str) -> None:
    try:
        ts = datetime.now(timezone.utc).isoformat()
        _log_path.parent.mkdir(parents=True, exist_ok=True)
        with _log_path.open("a", encoding="utf-8") as fh:
            fh.write(f"{ts} {message}\n")
    except Exception:
        # Logging must never interfere with the caller.
        return
