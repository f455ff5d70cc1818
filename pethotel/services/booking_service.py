"""Booking lifecycle: create, edit, status moves and monthly views."""

from __future__ import annotations

import math
import uuid
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from pethotel.domain.constraints import DateLike, parse_month, parse_stay
from pethotel.domain.errors import (
    RecordNotFoundError,
    TerminalStateViolationError,
    ValidationFailedError,
)
from pethotel.domain.models import Booking, BookingStatus, UNASSIGNED_ROOM
from pethotel.domain.rooms import all_room_names, validate_room_name
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.services.conflict_service import find_conflicts, unavailable_rooms
from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger, log_event


logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.PENDING, BookingStatus.CHECKED_IN, BookingStatus.CANCELLED}
    ),
    BookingStatus.CHECKED_IN: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED}
    ),
}
ROOM_REQUIRED_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN})
CREATABLE_STATUSES = frozenset(ALLOWED_TRANSITIONS)


def new_booking_id() -> str:
    return f"b{uuid.uuid4().hex[:12]}"


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise unless ``current -> target`` is a legal status move."""
    if current is target:
        return
    if current.is_terminal:
        raise TerminalStateViolationError(
            f"Booking is {current.value}; it cannot move to {target.value}"
        )
    if target not in ALLOWED_TRANSITIONS[current]:
        raise ValidationFailedError(f"Cannot move a booking from {current.value} to {target.value}")


class BookingService:
    """Validates every booking change against pets, dates and room interlocks."""

    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)

    # --- queries -------------------------------------------------------------

    def get_booking(self, booking_id: str) -> Booking:
        booking = self._repository.get_booking(booking_id)
        if booking is None:
            raise RecordNotFoundError(f"Booking not found: {booking_id}")
        return booking

    def list_bookings(self, month: Optional[str] = None) -> list[Booking]:
        """All bookings, or those whose check-in or check-out falls in ``month``."""
        bookings = self._repository.list_bookings()
        if month is not None:
            start, end = parse_month(month)
            bookings = [
                booking
                for booking in bookings
                if start <= booking.check_in < end or start <= booking.check_out < end
            ]
        return sorted(bookings, key=lambda booking: (booking.check_in, booking.id))

    def monthly_total(self, month: str) -> float:
        return sum(
            booking.total_price
            for booking in self.list_bookings(month)
            if booking.status is not BookingStatus.CANCELLED
        )

    def unavailable_rooms(
        self,
        check_in: DateLike,
        check_out: DateLike,
        exclude_booking_id: Optional[str] = None,
    ) -> set[str]:
        return unavailable_rooms(
            check_in, check_out, self._repository.list_bookings(), exclude_booking_id
        )

    def selectable_rooms(
        self,
        check_in: DateLike,
        check_out: DateLike,
        exclude_booking_id: Optional[str] = None,
    ) -> list[str]:
        """Registry rooms that can be assigned for the stay, in grid order."""
        blocked = self.unavailable_rooms(check_in, check_out, exclude_booking_id)
        if self._settings.maintenance_blocks_booking:
            blocked |= self._repository.maintenance_rooms()
        return [name for name in all_room_names() if name not in blocked]

    # --- commands ------------------------------------------------------------

    def create_booking(
        self,
        pet_ids: Sequence[str],
        check_in: DateLike,
        check_out: DateLike,
        room_number: str = UNASSIGNED_ROOM,
        total_price: float = 0,
        notes: str = "",
        status: BookingStatus = BookingStatus.PENDING,
    ) -> Booking:
        start, end = parse_stay(check_in, check_out)
        status = BookingStatus(status)
        if status not in CREATABLE_STATUSES:
            raise ValidationFailedError(f"A new booking cannot start as {status.value}")

        with self._repository.lock:
            booking = Booking(
                id=new_booking_id(),
                pet_ids=self._validated_pet_ids(pet_ids),
                check_in=start,
                check_out=end,
                status=status,
                room_number=self._validated_room(room_number),
                total_price=self._validated_price(total_price),
                notes=notes or "",
            )
            self._ensure_room_rules(booking)
            self._repository.put_booking(booking)

        log_event(
            logger,
            "Booking created",
            booking_id=booking.id,
            room=booking.room_number,
            check_in=booking.check_in,
            check_out=booking.check_out,
            status=booking.status.name,
        )
        return booking

    def update_booking(
        self,
        booking_id: str,
        *,
        pet_ids: Optional[Sequence[str]] = None,
        check_in: Optional[DateLike] = None,
        check_out: Optional[DateLike] = None,
        room_number: Optional[str] = None,
        total_price: Optional[float] = None,
        notes: Optional[str] = None,
        status: Optional[BookingStatus] = None,
    ) -> Booking:
        """Apply a partial change; ``None`` leaves a field as it is."""
        with self._repository.lock:
            current = self.get_booking(booking_id)
            updated = current

            start, end = current.check_in, current.check_out
            if check_in is not None or check_out is not None:
                start, end = parse_stay(
                    check_in if check_in is not None else current.check_in,
                    check_out if check_out is not None else current.check_out,
                )
            stay_changed = (start, end) != (current.check_in, current.check_out)
            room_changed = room_number is not None and room_number.strip() != current.room_number
            pets_changed = pet_ids is not None and tuple(pet_ids) != current.pet_ids
            if current.status.is_terminal and (stay_changed or room_changed or pets_changed):
                raise TerminalStateViolationError(
                    f"Booking {booking_id} is {current.status.value}; its stay can no longer change"
                )

            if stay_changed:
                updated = replace(updated, check_in=start, check_out=end)
            if room_changed:
                updated = replace(updated, room_number=self._validated_room(str(room_number)))
            if pets_changed:
                updated = replace(updated, pet_ids=self._validated_pet_ids(pet_ids or ()))
            if total_price is not None:
                updated = replace(updated, total_price=self._validated_price(total_price))
            if notes is not None:
                updated = replace(updated, notes=notes)
            # A move is checked under the status it happens in, even when the
            # same patch also checks the booking out.
            if (stay_changed or room_changed) and updated.is_active:
                self._ensure_room_rules(updated)
            if status is not None:
                target = BookingStatus(status)
                ensure_transition(current.status, target)
                updated = replace(updated, status=target)

            if updated == current:
                return current
            if updated.is_active:
                self._ensure_room_rules(updated)
            self._repository.put_booking(updated)

        log_event(
            logger,
            "Booking updated",
            booking_id=booking_id,
            room=updated.room_number,
            check_in=updated.check_in,
            check_out=updated.check_out,
            status=updated.status.name,
        )
        return updated

    def set_status(self, booking_id: str, status: BookingStatus) -> Booking:
        target = BookingStatus(status)
        with self._repository.lock:
            current = self.get_booking(booking_id)
            ensure_transition(current.status, target)
            if current.status is target:
                return current
            updated = replace(current, status=target)
            if target in ROOM_REQUIRED_STATUSES and not updated.has_room:
                raise ValidationFailedError(
                    f"Assign a room before marking booking {booking_id} as {target.value}"
                )
            self._repository.put_booking(updated)

        log_event(
            logger,
            "Booking status changed",
            booking_id=booking_id,
            previous=current.status.name,
            status=target.name,
        )
        return updated

    def cancel_booking(self, booking_id: str) -> Booking:
        return self.set_status(booking_id, BookingStatus.CANCELLED)

    # --- validation helpers --------------------------------------------------

    def _validated_pet_ids(self, pet_ids: Iterable[str]) -> tuple[str, ...]:
        if isinstance(pet_ids, str):
            raise ValidationFailedError("pet_ids must be a list of pet ids")
        normalized = tuple(str(pet_id).strip() for pet_id in pet_ids)
        if not normalized:
            raise ValidationFailedError("A booking needs at least one pet")
        if len(set(normalized)) != len(normalized):
            raise ValidationFailedError("A pet can only appear once per booking")
        unknown = [pet_id for pet_id in normalized if self._repository.get_pet(pet_id) is None]
        if unknown:
            raise ValidationFailedError(f"Unknown pet ids: {', '.join(unknown)}")
        return normalized

    @staticmethod
    def _validated_room(room_number: str) -> str:
        room_number = (room_number or UNASSIGNED_ROOM).strip()
        if room_number == UNASSIGNED_ROOM:
            return UNASSIGNED_ROOM
        return validate_room_name(room_number)

    @staticmethod
    def _validated_price(total_price: float) -> float:
        try:
            value = float(total_price)
        except (TypeError, ValueError) as exc:
            raise ValidationFailedError("total_price must be a number") from exc
        if not math.isfinite(value) or value < 0:
            raise ValidationFailedError("total_price must be a finite amount >= 0")
        return value

    def _ensure_room_rules(self, booking: Booking) -> None:
        """Check room assignment and interlocks for an active booking."""
        if booking.status in ROOM_REQUIRED_STATUSES and not booking.has_room:
            raise ValidationFailedError(
                f"A booking marked {booking.status.value} needs an assigned room"
            )
        if not booking.has_room:
            return
        if (
            self._settings.maintenance_blocks_booking
            and booking.room_number in self._repository.maintenance_rooms()
        ):
            raise ValidationFailedError(f"Room {booking.room_number} is under maintenance")

        conflicts = find_conflicts(
            booking.room_number,
            booking.check_in,
            booking.check_out,
            self._repository.list_bookings(),
            exclude_booking_id=booking.id,
        )
        if conflicts:
            details = ", ".join(
                f"{other.id} in {other.room_number} "
                f"({other.check_in.isoformat()} to {other.check_out.isoformat()})"
                for other in conflicts
            )
            raise ValidationFailedError(
                f"Room {booking.room_number} is unavailable for "
                f"{booking.check_in.isoformat()} to {booking.check_out.isoformat()}: {details}"
            )
