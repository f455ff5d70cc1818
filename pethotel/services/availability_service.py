"""Room availability engine: occupied, locked-by-partner, maintenance, vacant."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Collection, Iterable, Optional, Sequence

from pethotel.domain.constraints import DateLike, iter_days, parse_date, parse_month
from pethotel.domain.errors import InvalidRangeError, RecordNotFoundError, ValidationFailedError
from pethotel.domain.models import (
    MAINTENANCE,
    VACANT,
    Availability,
    Booking,
    Locked,
    Occupied,
    Pet,
    Room,
    RoomBoardEntry,
    RoomStatus,
)
from pethotel.domain.rooms import all_room_names, partners_of, validate_room_name
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger, log_event


logger = get_logger(__name__)

MANUAL_ROOM_STATUSES = (RoomStatus.VACANT, RoomStatus.MAINTENANCE)

Grid = dict[tuple[str, date], Availability]


def _covering_booking(room_name: str, day: date, bookings: Iterable[Booking]) -> Optional[Booking]:
    for booking in bookings:
        if booking.covers(room_name, day):
            return booking
    return None


def status_of(
    room_name: str,
    day: DateLike,
    bookings: Iterable[Booking],
    maintenance_rooms: Collection[str] = (),
) -> Availability:
    """Return the single status of ``room_name`` on ``day``.

    Maintenance wins for display. Otherwise a direct claim makes the room
    Occupied and a claim on any partner makes it Locked. Check-out day is not
    covered.
    """
    validate_room_name(room_name)
    target = parse_date(day)
    if room_name in maintenance_rooms:
        return MAINTENANCE

    active = [booking for booking in bookings if booking.is_active]
    direct = _covering_booking(room_name, target, active)
    if direct is not None:
        return Occupied(booking=direct)

    for partner in partners_of(room_name):
        locking = _covering_booking(partner, target, active)
        if locking is not None:
            return Locked(booking=locking, partner_room=partner)
    return VACANT


def _occupancy_index(
    start: date,
    end: date,
    bookings: Iterable[Booking],
) -> dict[tuple[str, date], Booking]:
    """Map each claimed (room, day) inside ``[start, end)`` to its booking."""
    index: dict[tuple[str, date], Booking] = {}
    for booking in bookings:
        if not booking.is_active or not booking.has_room:
            continue
        first = max(start, booking.check_in)
        last = min(end, booking.check_out)
        for day in iter_days(first, last):
            index.setdefault((booking.room_number, day), booking)
    return index


def grid_for(
    start: DateLike,
    end: DateLike,
    room_names: Sequence[str],
    bookings: Iterable[Booking],
    maintenance_rooms: Collection[str] = (),
) -> Grid:
    """Status of every (room, day) in ``[start, end)``; the range must be non-empty.

    Bookings are indexed once, so the cost is one pass over the bookings plus
    one lookup per cell and partner.
    """
    first = parse_date(start, "start")
    last = parse_date(end, "end")
    if first >= last:
        raise InvalidRangeError(
            f"start ({first.isoformat()}) must be before end ({last.isoformat()})"
        )
    for room_name in room_names:
        validate_room_name(room_name)

    index = _occupancy_index(first, last, bookings)
    grid: Grid = {}
    for room_name in room_names:
        partners = partners_of(room_name)
        in_maintenance = room_name in maintenance_rooms
        for day in iter_days(first, last):
            if in_maintenance:
                grid[(room_name, day)] = MAINTENANCE
                continue
            direct = index.get((room_name, day))
            if direct is not None:
                grid[(room_name, day)] = Occupied(booking=direct)
                continue
            status: Availability = VACANT
            for partner in partners:
                locking = index.get((partner, day))
                if locking is not None:
                    status = Locked(booking=locking, partner_room=partner)
                    break
            grid[(room_name, day)] = status
    return grid


class AvailabilityService:
    """Room board, schedule grid and manual room status for the dashboard."""

    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)

    def list_rooms(self) -> list[Room]:
        return self._repository.list_rooms()

    def status_of(self, room_name: str, day: DateLike) -> Availability:
        return status_of(
            room_name,
            day,
            self._repository.list_bookings(),
            self._repository.maintenance_rooms(),
        )

    def room_board(self, day: DateLike) -> list[RoomBoardEntry]:
        target = parse_date(day)
        rooms = self._repository.list_rooms()
        grid = grid_for(
            target,
            target + timedelta(days=1),
            [room.name for room in rooms],
            self._repository.list_bookings(),
            self._repository.maintenance_rooms(),
        )
        entries: list[RoomBoardEntry] = []
        for room in rooms:
            availability = grid[(room.name, target)]
            pets: tuple[Pet, ...] = ()
            if isinstance(availability, Occupied):
                pets = self._pets_for(availability.booking)
            entries.append(RoomBoardEntry(room=room, availability=availability, pets=pets))
        return entries

    def schedule(self, month: str) -> Grid:
        start, end = parse_month(month)
        return grid_for(
            start,
            end,
            all_room_names(),
            self._repository.list_bookings(),
            self._repository.maintenance_rooms(),
        )

    def set_room_status(self, room_name: str, status: RoomStatus) -> Room:
        """Manually flag a room for maintenance or mark it ready again.

        Rooms with an active stay can still be flagged; the flag only changes
        what the board shows.
        """
        validate_room_name(room_name)
        if status not in MANUAL_ROOM_STATUSES:
            raise ValidationFailedError(
                f"Only {', '.join(item.value for item in MANUAL_ROOM_STATUSES)} can be set manually"
            )
        room = self._repository.get_room(room_name)
        if room is None:
            raise RecordNotFoundError(f"Room not found: {room_name}")
        updated = Room(
            id=room.id,
            name=room.name,
            status=status,
            is_vip=room.is_vip,
            floor=room.floor,
            column=room.column,
            tags=room.tags,
            combined_with=room.combined_with,
        )
        self._repository.put_room(updated)
        log_event(logger, "Room status changed", room=room_name, status=status.name)
        return updated

    def _pets_for(self, booking: Booking) -> tuple[Pet, ...]:
        pets = (self._repository.get_pet(pet_id) for pet_id in booking.pet_ids)
        return tuple(pet for pet in pets if pet is not None)
