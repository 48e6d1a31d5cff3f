"""JSON log lines tagged with the decision and user being evaluated."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, TextIO

from ..config.settings import MonitoringConfig

PACKAGE_LOGGER = "liquidity_rebalancer"

_DECISION_ID: ContextVar[Optional[str]] = ContextVar("decision_id", default=None)
_USER_ID: ContextVar[Optional[str]] = ContextVar("user_id", default=None)
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}
_installed: Optional[logging.Handler] = None


class DecisionLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields are merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        decision_id = _DECISION_ID.get()
        if decision_id:
            entry["decision_id"] = decision_id
        user_id = _USER_ID.get()
        if user_id:
            entry["user_id"] = user_id
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                entry.setdefault(key, value)
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, sort_keys=True)


def configure_logging(config: MonitoringConfig, *, stream: Optional[TextIO] = None) -> logging.Handler:
    """Route the package logger to a single JSON handler.

    Calling it again replaces the previous handler. The default stream is
    stderr so CLI output on stdout stays machine readable.
    """

    global _installed
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _installed is not None:
        logger.removeHandler(_installed)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(DecisionLogFormatter())
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))
    logger.propagate = False
    _installed = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def current_decision_id() -> Optional[str]:
    return _DECISION_ID.get()


@contextmanager
def decision_context(decision_id: Optional[str] = None, *, user_id: Optional[str] = None) -> Iterator[None]:
    """Tag log lines emitted inside the block; unset values keep the outer tag."""

    decision_token = _DECISION_ID.set(decision_id or _DECISION_ID.get())
    user_token = _USER_ID.set(user_id or _USER_ID.get())
    try:
        yield
    finally:
        _USER_ID.reset(user_token)
        _DECISION_ID.reset(decision_token)


__all__ = [
    "DecisionLogFormatter",
    "configure_logging",
    "current_decision_id",
    "decision_context",
    "get_logger",
]
