"""Exceptions for lmcode operations."""


class LmcodeError(Exception):
    """Base exception for lmcode operations."""

    pass


class ModelCallError(LmcodeError):
    """Raised when a request to the model server fails."""

    pass
