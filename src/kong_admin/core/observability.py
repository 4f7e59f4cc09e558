from __future__ import annotations

import logging
from typing import Any, Dict

RESERVED_LOG_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}

OBSERVABILITY_LOGGER = "kong_admin.observability"


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS}


def log_event(
    event: str,
    logger: logging.Logger | None = None,
    *,
    level: int = logging.DEBUG,
    **fields: Any,
) -> None:
    """
    Emit one structured event; fields travel as LogRecord extras so the
    logfmt formatter can render them.
    """
    log = logger or logging.getLogger(OBSERVABILITY_LOGGER)
    if not log.isEnabledFor(level):
        return
    extra = {"event": event, **_clean_fields(fields)}
    log.log(level, event, extra=extra)


__all__ = ["OBSERVABILITY_LOGGER", "log_event"]
