"""Exceptions for universe export."""


class ExportError(Exception):
    """Export could not be prepared or was rejected by the platform."""

    pass
