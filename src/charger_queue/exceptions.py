"""Exception hierarchy for the charger queue service."""

from typing import Optional


class ChargerQueueError(Exception):
    """Base exception for all charger queue errors."""


class ConfigurationError(ChargerQueueError):
    """Missing or invalid service configuration."""


class InvalidInput(ChargerQueueError):
    """Malformed payload, missing required field or unknown action."""


class Forbidden(ChargerQueueError):
    """Shared secret missing or wrong on a mutating request."""


class Conflict(ChargerQueueError):
    """The stored document changed since it was read."""

    def __init__(self, message: str, *, expected: Optional[str] = None, actual: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class StoreUnavailable(ChargerQueueError):
    """Transport failure while talking to the backing store."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
