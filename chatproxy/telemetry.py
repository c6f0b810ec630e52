"""Logging and telemetry for the chat proxy.

Emits structured log records to stdout and appends them to an append-only
log file for local review.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("chatproxy")

_LEVELS = {
    "success": logging.INFO,
    "validation_error": logging.WARNING,
}


_FORMATTER = logging.Formatter(
    "%(asctime)s %(name)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)


def _has_file_handler(path: Path) -> bool:
    target = os.path.abspath(path)
    return any(
        isinstance(h, logging.FileHandler) and h.baseFilename == target
        for h in logger.handlers
    )


def setup_logging(log_file: Optional[str], level: str = "INFO") -> None:
    """Attach the proxy's handlers to the ``chatproxy`` logger.

    A stdout handler is always present. When ``log_file`` is set, request
    records are also appended to it; an empty value keeps logging on
    stdout only. Calling this again does not duplicate handlers.

    Args:
        log_file: Path to the append-only log file, or empty/None.
        level: Logging level name, e.g. "INFO" or "DEBUG".
    """
    logger.setLevel(level.upper())

    has_stream = any(type(h) is logging.StreamHandler for h in logger.handlers)
    if not has_stream:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(_FORMATTER)
        logger.addHandler(stream_handler)

    if not log_file:
        return

    log_path = Path(log_file)
    if _has_file_handler(log_path):
        return

    os.makedirs(log_path.parent, exist_ok=True)
    file_handler = logging.FileHandler(log_path, mode="a")
    file_handler.setFormatter(_FORMATTER)
    logger.addHandler(file_handler)


def log_request(
    *,
    outcome: str,
    status: int,
    request_id: Optional[str] = None,
    error: Optional[str] = None,
    details: Any = None
) -> None:
    """Log a single proxied request.

    Writes one JSON line. Successes go out at INFO, rejected input at
    WARNING, everything else at ERROR.

    Args:
        outcome: Short outcome label (e.g. "success", "provider_error").
        status: HTTP status returned to the caller.
        request_id: Proxy-assigned request ID.
        error: Error message if the request failed.
        details: Provider error body or traceback, if any.
    """
    record: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
        "outcome": outcome,
        "status": status,
    }

    if error:
        record["error"] = error

    if details:
        record["details"] = details

    level = _LEVELS.get(outcome, logging.ERROR)
    logger.log(level, json.dumps(record, default=str))
