"""Exceptions for criteria generation."""


class CriteriaGenerationError(Exception):
    """The language model could not produce a criteria list."""

    pass
