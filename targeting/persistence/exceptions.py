"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can
catch every database failure with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Database initialization or connection failed."""

    pass


class RecordNotFoundError(PersistenceError):
    """A record required by an update was not found for this owner.

    Optional lookups return None (or False) instead of raising.
    """

    pass
