"""Which rooms cannot be sold for a proposed stay."""

from __future__ import annotations

from typing import Iterable, Optional

from pethotel.domain.constraints import DateLike, parse_stay, ranges_overlap
from pethotel.domain.models import Booking
from pethotel.domain.rooms import interlock_group, validate_room_name


def _overlapping(
    check_in: DateLike,
    check_out: DateLike,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[str],
) -> list[Booking]:
    start, end = parse_stay(check_in, check_out)
    return [
        booking
        for booking in bookings
        if booking.is_active
        and booking.has_room
        and booking.id != exclude_booking_id
        and ranges_overlap(start, end, booking.check_in, booking.check_out)
    ]


def unavailable_rooms(
    check_in: DateLike,
    check_out: DateLike,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> set[str]:
    """Rooms blocked for ``[check_in, check_out)``.

    Every overlapping stay blocks its own room and every room sharing a wall
    with it. A stay ending on the day another starts does not overlap.
    """
    blocked: set[str] = set()
    for booking in _overlapping(check_in, check_out, bookings, exclude_booking_id):
        blocked.update(interlock_group(booking.room_number))
    return blocked


def find_conflicts(
    room_name: str,
    check_in: DateLike,
    check_out: DateLike,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> list[Booking]:
    """Overlapping stays that claim ``room_name`` or one of its partners."""
    group = interlock_group(validate_room_name(room_name))
    return [
        booking
        for booking in _overlapping(check_in, check_out, bookings, exclude_booking_id)
        if booking.room_number in group
    ]
