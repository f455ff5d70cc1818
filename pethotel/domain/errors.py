"""Error taxonomy shared by the engine, services and controllers."""

from __future__ import annotations


class HotelError(Exception):
    """Base class for recoverable, user-correctable failures."""


class InvalidRoomError(HotelError):
    """Raised when a room name is not part of the room registry."""


class InvalidDateError(HotelError):
    """Raised when a date is not a valid YYYY-MM-DD calendar date."""


class InvalidRangeError(HotelError):
    """Raised when check-in is not strictly before check-out."""


class ValidationFailedError(HotelError):
    """Raised when a commit would violate a repository invariant."""


class TerminalStateViolationError(HotelError):
    """Raised when a checked-out or cancelled booking is edited."""


class RecordNotFoundError(HotelError):
    """Raised when a booking, pet or room id is unknown."""
