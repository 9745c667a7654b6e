"""Logging setup shared by the distributor modules."""

import logging
import os

_HANDLER_ATTACHED = False
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level() -> int:
    level_name = os.getenv("WORKLOG_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, attaching one stream handler to the root logger."""
    global _HANDLER_ATTACHED

    level = _resolve_level()
    root = logging.getLogger()
    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
        _HANDLER_ATTACHED = True
    root.setLevel(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


def with_context(message: str, **context) -> str:
    """Append key=value context to a log message, skipping None values."""
    parts = [f"{k}={v}" for k, v in context.items() if v is not None]
    if not parts:
        return message
    return f"{message} [{' '.join(parts)}]"


def mask_secret(value: str | None, visible: int = 4) -> str:
    """Mask all but the first and last few characters of a secret."""
    if not value:
        return ""
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}{'*' * (len(value) - visible * 2)}{value[-visible:]}"
