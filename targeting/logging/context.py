"""Scoped logging context.

Fields pushed here (batch_id, criterion, country_code, ...) are merged into
every log record emitted inside the scope by ``ContextualFilter``. Storage is
a ``ContextVar`` so concurrent batches on different threads never see each
other's fields.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

_log_fields: ContextVar[Dict[str, Any]] = ContextVar("targeting_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields active in the current context."""
    return dict(_log_fields.get())


def push_log_context(**fields: Any) -> Token:
    """Layer new fields over the current context.

    Returns:
        Token to hand back to ``pop_log_context``

    Example:
        >>> token = push_log_context(batch_id="3f2a", country_code="BE")
        >>> pop_log_context(token)
    """
    return _log_fields.set({**_log_fields.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context that was active before ``push_log_context``."""
    _log_fields.reset(token)


def clear_log_context() -> None:
    """Drop every field. Mostly useful in tests."""
    _log_fields.set({})


class log_context:
    """Context manager form of push/pop.

    Example:
        >>> with log_context(batch_id="3f2a"):
        ...     with log_context(criterion="Nike"):
        ...         logger.info("Looking up interests")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
