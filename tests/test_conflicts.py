"""Tests for unavailable-room computation over half-open stays."""

from __future__ import annotations

from datetime import date

import pytest

from pethotel.domain.errors import InvalidDateError, InvalidRangeError
from pethotel.domain.models import Booking, BookingStatus, UNASSIGNED_ROOM
from pethotel.services.conflict_service import find_conflicts, unavailable_rooms


def _booking(
    booking_id: str,
    room: str,
    check_in: str,
    check_out: str,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> Booking:
    return Booking(
        id=booking_id,
        pet_ids=("p1",),
        check_in=date.fromisoformat(check_in),
        check_out=date.fromisoformat(check_out),
        status=status,
        room_number=room,
    )


def test_overlapping_standard_booking_blocks_room_and_vip_partner() -> None:
    bookings = [_booking("b1", "1", "2024-05-01", "2024-05-03")]
    assert unavailable_rooms("2024-05-02", "2024-05-04", bookings) == {"1", "VIP 01"}


def test_same_day_turnover_is_allowed() -> None:
    bookings = [_booking("b1", "1", "2024-05-01", "2024-05-03")]
    assert unavailable_rooms("2024-05-03", "2024-05-05", bookings) == set()
    assert unavailable_rooms("2024-04-28", "2024-05-01", bookings) == set()


def test_vip_booking_blocks_both_standard_partners() -> None:
    bookings = [_booking("b1", "VIP 03", "2024-05-01", "2024-05-03")]
    assert unavailable_rooms("2024-05-01", "2024-05-02", bookings) == {"VIP 03", "3", "8"}


def test_cancelled_booking_frees_rooms_and_locks() -> None:
    bookings = [_booking("b1", "1", "2024-05-01", "2024-05-03")]
    assert unavailable_rooms("2024-05-01", "2024-05-03", bookings)
    cancelled = [_booking("b1", "1", "2024-05-01", "2024-05-03", BookingStatus.CANCELLED)]
    assert unavailable_rooms("2024-05-01", "2024-05-03", cancelled) == set()


def test_checked_out_and_unassigned_bookings_block_nothing() -> None:
    bookings = [
        _booking("b1", "2", "2024-05-01", "2024-05-03", BookingStatus.CHECKED_OUT),
        _booking("b2", UNASSIGNED_ROOM, "2024-05-01", "2024-05-03", BookingStatus.PENDING),
    ]
    assert unavailable_rooms("2024-05-01", "2024-05-03", bookings) == set()


def test_excluded_booking_does_not_block_itself() -> None:
    bookings = [
        _booking("b1", "1", "2024-05-01", "2024-05-03"),
        _booking("b2", "7", "2024-05-02", "2024-05-04"),
    ]
    assert unavailable_rooms("2024-05-01", "2024-05-03", bookings, exclude_booking_id="b1") == {
        "7",
        "VIP 02",
    }


def test_double_booking_is_always_detected() -> None:
    bookings = [_booking("b1", "4", "2024-05-10", "2024-05-15")]
    for check_in, check_out in [
        ("2024-05-09", "2024-05-11"),
        ("2024-05-14", "2024-05-20"),
        ("2024-05-11", "2024-05-12"),
        ("2024-05-01", "2024-05-30"),
    ]:
        blocked = unavailable_rooms(check_in, check_out, bookings)
        assert {"4", "VIP 04"} <= blocked


def test_invalid_input_raises_before_any_work() -> None:
    with pytest.raises(InvalidRangeError):
        unavailable_rooms("2024-05-03", "2024-05-03", [])
    with pytest.raises(InvalidDateError):
        unavailable_rooms("2024-5-3", "2024-05-04", [])


def test_find_conflicts_reports_partner_claims() -> None:
    bookings = [
        _booking("b1", "6", "2024-05-01", "2024-05-03"),
        _booking("b2", "2", "2024-05-01", "2024-05-03"),
    ]
    conflicts = find_conflicts("VIP 01", "2024-05-02", "2024-05-05", bookings)
    assert [booking.id for booking in conflicts] == ["b1"]
    assert find_conflicts("VIP 01", "2024-05-03", "2024-05-05", bookings) == []
