"""
Scrambler Errors

Every rejected input surfaces as one of these before any transform work
starts. All derive from ScrambleError (a ValueError) so callers can catch
the family or a specific kind.
"""

from typing import Optional


class ScrambleError(ValueError):
    """Base class for scrambler input errors."""


class ArgumentCountError(ScrambleError):
    """Raised when required arguments are missing or too many are given."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        if message is None:
            message = f"{operation}: wrong number of arguments."
        super().__init__(message)


class ShapeMismatchError(ScrambleError):
    """Raised when an array or parameter set has the wrong shape."""

    def __init__(self, what: str, expected, actual, message: Optional[str] = None):
        self.what = what
        self.expected = expected
        self.actual = actual
        if message is None:
            message = f"{what}: expected {expected}, got {actual}."
        super().__init__(message)


class DomainValidationError(ScrambleError):
    """Raised when a value is outside the domain an operation accepts."""


class AlignmentError(ScrambleError):
    """Raised when audio and video cannot be aligned."""
