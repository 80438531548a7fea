"""Errors raised for malformed matcher input."""

from typing import Optional


class InvalidArgumentError(ValueError):
    """Caller passed input the matcher cannot interpret. Never retried."""


class InvalidCandidateError(InvalidArgumentError):
    """A candidate is not a well-formed interest suggestion (e.g. it has no name)."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index
