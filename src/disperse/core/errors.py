"""
Error types raised by the planning engine.

An orchestration call either returns every bundle list or raises exactly
one of these.
"""

from typing import Optional


class DisperseError(Exception):
    """Base class for disperse errors."""
    pass


class ConfigurationError(DisperseError):
    """Raised when the transfer configuration cannot be interpreted."""
    pass


class CapacityError(ConfigurationError):
    """Raised when a bundle capacity below 1 is supplied."""

    def __init__(self, capacity):
        super().__init__(f"capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity


class LookupFailure(DisperseError):
    """Raised when an account existence check cannot complete."""

    def __init__(self, message: str, recipient: Optional[str] = None):
        super().__init__(message)
        self.recipient = recipient


class DispatchError(DisperseError):
    """Raised when provisioning fails, so transfer bundles were never sent."""
    pass
