"""Scoped logging context.

Fields bound here (request_id, seeker position, source name) are copied onto
every log record emitted inside the scope by ``ContextualFilter``. Storage is
a ContextVar, so concurrent requests on different threads or tasks do not see
each other's fields.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Dict, Iterator, Mapping

_fields: ContextVar[Mapping[str, Any]] = ContextVar("nearby_jobs_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields bound in the current scope."""
    return dict(_fields.get())


def push_log_context(**fields: Any) -> Token:
    """Bind fields on top of the current ones; later values win.

    Returns:
        Token for pop_log_context()

    Example:
        >>> token = push_log_context(request_id="4f1c", source="firestore")
        >>> pop_log_context(token)
    """
    return _fields.set({**_fields.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the fields that were bound before ``push_log_context``."""
    _fields.reset(token)


def clear_log_context() -> None:
    """Unbind every field. Mostly for tests."""
    _fields.set({})


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Bind fields for the duration of a ``with`` block.

    The previous fields are restored on exit, including when the block raises.

    Example:
        >>> with log_context(request_id="4f1c"):
        ...     logger.info("Fetching candidates")
    """
    token = push_log_context(**fields)
    try:
        yield get_log_context()
    finally:
        pop_log_context(token)
