"""Tests for booking validation, the status lifecycle and monthly views."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from pethotel.domain.errors import (
    InvalidDateError,
    InvalidRangeError,
    InvalidRoomError,
    RecordNotFoundError,
    TerminalStateViolationError,
    ValidationFailedError,
)
from pethotel.domain.models import BookingStatus, Pet, RoomStatus, UNASSIGNED_ROOM
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.services.availability_service import AvailabilityService
from pethotel.services.booking_service import BookingService
from pethotel.utils.config import get_settings


def _build_service(tmp_path, **overrides) -> tuple[BookingService, HotelRepository]:
    get_settings.cache_clear()
    overrides.setdefault("maintenance_blocks_booking", False)
    settings = replace(
        get_settings(),
        snapshot_database_path=tmp_path / "bookings.db",
        **overrides,
    )
    repository = HotelRepository(settings)
    for pet_id, name in (("p1", "大橘"), ("p2", "咪咪"), ("p3", "豆豆")):
        repository.put_pet(Pet(id=pet_id, name=name))
    return BookingService(repository=repository, settings=settings), repository


# --- create ---

def test_create_booking_with_defaults(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    booking = service.create_booking(["p1"], "2024-05-01", "2024-05-03")

    assert booking.id.startswith("b")
    assert booking.status is BookingStatus.PENDING
    assert booking.room_number == UNASSIGNED_ROOM
    assert booking.check_in == date(2024, 5, 1)
    assert repository.get_booking(booking.id) == booking


def test_create_rejects_interlocked_room(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    service.create_booking(["p1"], "2024-05-01", "2024-05-03", room_number="1")

    with pytest.raises(ValidationFailedError):
        service.create_booking(["p2"], "2024-05-02", "2024-05-04", room_number="1")
    with pytest.raises(ValidationFailedError):
        service.create_booking(["p2"], "2024-05-02", "2024-05-04", room_number="VIP 01")
    assert len(repository.list_bookings()) == 1

    turnover = service.create_booking(["p2"], "2024-05-03", "2024-05-05", room_number="VIP 01")
    assert turnover.room_number == "VIP 01"
    other = service.create_booking(["p3"], "2024-05-01", "2024-05-03", room_number="VIP 02")
    assert other.room_number == "VIP 02"


@pytest.mark.parametrize(
    ("kwargs", "error"),
    [
        ({"pet_ids": []}, ValidationFailedError),
        ({"pet_ids": ["p1", "p1"]}, ValidationFailedError),
        ({"pet_ids": ["ghost"]}, ValidationFailedError),
        ({"total_price": -1}, ValidationFailedError),
        ({"total_price": float("nan")}, ValidationFailedError),
        ({"room_number": "VIP 06"}, InvalidRoomError),
        ({"check_in": "2024-05-03"}, InvalidRangeError),
        ({"check_out": "05/04/2024"}, InvalidDateError),
        ({"status": BookingStatus.CONFIRMED}, ValidationFailedError),
        ({"status": BookingStatus.CANCELLED}, ValidationFailedError),
    ],
)
def test_create_rejects_invalid_input(tmp_path, kwargs, error) -> None:
    service, repository = _build_service(tmp_path)
    values = {"pet_ids": ["p1"], "check_in": "2024-05-01", "check_out": "2024-05-03"}
    values.update(kwargs)

    with pytest.raises(error):
        service.create_booking(**values)
    assert repository.list_bookings() == []


def test_maintenance_blocks_booking_only_when_enabled(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    AvailabilityService(repository).set_room_status("5", RoomStatus.MAINTENANCE)
    assert "5" in service.selectable_rooms("2024-05-01", "2024-05-02")
    service.create_booking(["p1"], "2024-05-01", "2024-05-02", room_number="5")

    strict, strict_repository = _build_service(tmp_path, maintenance_blocks_booking=True)
    AvailabilityService(strict_repository).set_room_status("5", RoomStatus.MAINTENANCE)
    assert "5" not in strict.selectable_rooms("2024-05-01", "2024-05-02")
    with pytest.raises(ValidationFailedError):
        strict.create_booking(["p1"], "2024-05-01", "2024-05-02", room_number="5")


def test_selectable_rooms_hides_blocked_rooms(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    service.create_booking(["p1"], "2024-05-01", "2024-05-03", room_number="VIP 02")
    selectable = service.selectable_rooms("2024-05-02", "2024-05-04")
    assert "VIP 02" not in selectable
    assert "2" not in selectable and "7" not in selectable
    assert len(selectable) == 12


# --- update ---

def test_update_moves_room_and_ignores_own_claim(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    booking = service.create_booking(["p1"], "2024-05-01", "2024-05-03", room_number="1")

    extended = service.update_booking(booking.id, check_out="2024-05-05")
    assert extended.check_out == date(2024, 5, 5)
    moved = service.update_booking(booking.id, room_number="VIP 01")
    assert moved.room_number == "VIP 01"


def test_update_rejects_conflicting_move_and_keeps_state(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    first = service.create_booking(["p1"], "2024-05-01", "2024-05-03", room_number="1")
    second = service.create_booking(["p2"], "2024-05-01", "2024-05-03", room_number="2")

    with pytest.raises(ValidationFailedError):
        service.update_booking(second.id, room_number="VIP 01")
    with pytest.raises(InvalidRangeError):
        service.update_booking(second.id, check_in="2024-05-04")
    assert repository.get_booking(second.id) == second
    assert repository.get_booking(first.id) == first


def test_move_is_checked_before_checkout_in_same_update(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    service.create_booking(
        ["p1"], "2024-05-01", "2024-05-06", room_number="1", status=BookingStatus.CHECKED_IN
    )
    second = service.create_booking(
        ["p2"], "2024-05-01", "2024-05-06", room_number="2", status=BookingStatus.CHECKED_IN
    )

    with pytest.raises(ValidationFailedError):
        service.update_booking(second.id, room_number="VIP 01", status=BookingStatus.CHECKED_OUT)
    assert repository.get_booking(second.id) == second

    checked_out = service.update_booking(
        second.id, room_number="3", status=BookingStatus.CHECKED_OUT
    )
    assert (checked_out.room_number, checked_out.status) == ("3", BookingStatus.CHECKED_OUT)


def test_update_unknown_booking(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    with pytest.raises(RecordNotFoundError):
        service.update_booking("missing", notes="x")


def test_terminal_booking_stay_cannot_change(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    booking = service.create_booking(["p1"], "2024-05-01", "2024-05-03", room_number="3")
    service.cancel_booking(booking.id)

    with pytest.raises(TerminalStateViolationError):
        service.update_booking(booking.id, room_number="4")
    with pytest.raises(TerminalStateViolationError):
        service.update_booking(booking.id, check_out="2024-05-06")
    noted = service.update_booking(booking.id, notes="owner called to cancel")
    assert noted.notes == "owner called to cancel"


# --- status lifecycle ---

def test_full_lifecycle(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    booking = service.create_booking(["p1"], "2024-05-01", "2024-05-03", room_number="8")

    assert service.set_status(booking.id, BookingStatus.CONFIRMED).status is BookingStatus.CONFIRMED
    assert service.set_status(booking.id, BookingStatus.CHECKED_IN).status is BookingStatus.CHECKED_IN
    assert service.set_status(booking.id, BookingStatus.CHECKED_OUT).status is BookingStatus.CHECKED_OUT

    with pytest.raises(TerminalStateViolationError):
        service.set_status(booking.id, BookingStatus.CHECKED_IN)


def test_cancelled_is_terminal_and_frees_room(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    booking = service.create_booking(["p1"], "2024-05-01", "2024-05-03", room_number="VIP 05")
    service.cancel_booking(booking.id)

    for status in (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CHECKED_OUT):
        with pytest.raises(TerminalStateViolationError):
            service.set_status(booking.id, status)
    assert service.unavailable_rooms("2024-05-01", "2024-05-03") == set()
    replacement = service.create_booking(["p2"], "2024-05-01", "2024-05-03", room_number="5")
    assert replacement.room_number == "5"


def test_illegal_moves_are_rejected(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    booking = service.create_booking(["p1"], "2024-05-01", "2024-05-03", room_number="9")
    with pytest.raises(ValidationFailedError):
        service.set_status(booking.id, BookingStatus.CHECKED_OUT)


def test_confirming_requires_a_room(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    booking = service.create_booking(["p1"], "2024-05-01", "2024-05-03")
    with pytest.raises(ValidationFailedError):
        service.set_status(booking.id, BookingStatus.CONFIRMED)
    assigned = service.update_booking(booking.id, room_number="2", status=BookingStatus.CONFIRMED)
    assert assigned.status is BookingStatus.CONFIRMED


def test_setting_same_status_is_a_no_op(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    booking = service.create_booking(["p1"], "2024-05-01", "2024-05-03")
    assert service.set_status(booking.id, BookingStatus.PENDING) == booking


# --- monthly views ---

def test_month_listing_and_total(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    service.create_booking(["p1"], "2024-04-29", "2024-05-02", room_number="1", total_price=3000)
    service.create_booking(["p2"], "2024-05-10", "2024-05-12", room_number="2", total_price=2000)
    cancelled = service.create_booking(["p3"], "2024-05-20", "2024-05-22", room_number="3", total_price=900)
    service.cancel_booking(cancelled.id)
    service.create_booking(["p3"], "2024-06-01", "2024-06-03", room_number="3", total_price=500)

    may = service.list_bookings("2024-05")
    assert [booking.check_in for booking in may] == [
        date(2024, 4, 29),
        date(2024, 5, 10),
        date(2024, 5, 20),
    ]
    assert service.monthly_total("2024-05") == 5000
    assert len(service.list_bookings()) == 4
