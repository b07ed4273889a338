"""Per-wizard session id on log records.

Each BookingWizard gets a session id; the resolver, the conflict guard and
the draft store log through session-aware loggers so one visitor's booking
can be followed end to end.

Usage:
    from salonbook.logging_context import bound_session, get_session_logger

    logger = get_session_logger(__name__)
    with bound_session("WZ-1a2b3c"):
        logger.info("Slot accepted")  # record.session_id == "WZ-1a2b3c"
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

NO_SESSION = "NO_SESSION"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def new_session_id(prefix: str = "WZ") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def set_session_id(session_id: str) -> Token:
    """Bind ``session_id`` to the current async context; returns a reset token."""
    return _session_id.set(session_id)


def reset_session_id(token: Token) -> None:
    _session_id.reset(token)


def get_session_id() -> str:
    return _session_id.get()


@contextmanager
def bound_session(session_id: str) -> Iterator[str]:
    """Bind a session id for the duration of a block, restoring the previous one after."""
    token = set_session_id(session_id)
    try:
        yield session_id
    finally:
        reset_session_id(token)


class SessionIdFilter(logging.Filter):
    """Stamps ``session_id`` on records that don't already carry one via ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Return the named logger with a SessionIdFilter attached exactly once."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
