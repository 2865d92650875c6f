"""
Exception types raised by the racing line finder.

All errors raised by geometry, simulation and optimization entry points derive
from RacingLineError so callers can catch them in one place.
"""

from typing import Optional


class RacingLineError(Exception):
    """Base class for racing line finder errors."""


class InsufficientInputError(RacingLineError, ValueError):
    """Raised when an operation receives fewer points than it needs."""

    def __init__(self, operation: str, required: int, actual: Optional[int] = None,
                 message: Optional[str] = None):
        """
        Initialize the error.

        Args:
            operation: Name of the operation that rejected its input
            required: Minimum number of points the operation needs
            actual: Number of points actually supplied
            message: Optional human readable description
        """
        self.operation = operation
        self.required = required
        self.actual = actual

        if message is None:
            message = f"{operation} requires at least {required} points"
            if actual is not None:
                message += f", got {actual}"
        super().__init__(message)
