"""Static room registry and the standard/VIP interlock relation.

Each VIP suite shares removable walls with two standard rooms: the one above
it in the upper row (``n``) and the one in the lower row (``n + 5``). Only one
side of a shared wall can be sold for a given night.
"""

from __future__ import annotations

from pethotel.domain.errors import InvalidRoomError
from pethotel.domain.models import Room, RoomStatus


STANDARD_ROOM_COUNT = 10
VIP_ROOM_COUNT = 5
VIP_PREFIX = "VIP "

STANDARD_ROOM_NAMES: tuple[str, ...] = tuple(
    str(number) for number in range(1, STANDARD_ROOM_COUNT + 1)
)
VIP_ROOM_NAMES: tuple[str, ...] = tuple(
    f"{VIP_PREFIX}{number:02d}" for number in range(1, VIP_ROOM_COUNT + 1)
)
_ALL_ROOM_NAMES = STANDARD_ROOM_NAMES + VIP_ROOM_NAMES
_REGISTRY = frozenset(_ALL_ROOM_NAMES)


def all_room_names() -> tuple[str, ...]:
    """Return the 15 room names in grid order: standard 1-10, then VIP 01-05."""
    return _ALL_ROOM_NAMES


def is_registered(room_name: str) -> bool:
    return room_name in _REGISTRY


def validate_room_name(room_name: str) -> str:
    if room_name not in _REGISTRY:
        raise InvalidRoomError(f"Unknown room: {room_name!r}")
    return room_name


def is_vip(room_name: str) -> bool:
    return validate_room_name(room_name).startswith(VIP_PREFIX)


def _vip_number(room_name: str) -> int:
    return int(room_name[len(VIP_PREFIX):])


def _vip_name(number: int) -> str:
    return f"{VIP_PREFIX}{number:02d}"


def partners_of(room_name: str) -> tuple[str, ...]:
    """Return every room that shares a wall with ``room_name``.

    Standard rooms have exactly one partner; VIP suites have two.
    """
    validate_room_name(room_name)
    if room_name.startswith(VIP_PREFIX):
        number = _vip_number(room_name)
        return (str(number), str(number + VIP_ROOM_COUNT))
    number = int(room_name)
    if number <= VIP_ROOM_COUNT:
        return (_vip_name(number),)
    return (_vip_name(number - VIP_ROOM_COUNT),)


def interlock_group(room_name: str) -> frozenset[str]:
    """Return the room itself plus all of its partners."""
    return frozenset((room_name, *partners_of(room_name)))


def default_rooms() -> list[Room]:
    """Build the initial room records in registry order."""
    rooms: list[Room] = []
    for index, name in enumerate(STANDARD_ROOM_NAMES):
        rooms.append(
            Room(
                id=f"r{index + 1}",
                name=name,
                status=RoomStatus.VACANT,
                is_vip=False,
                floor="lower" if index >= VIP_ROOM_COUNT else "upper",
                column=(index % VIP_ROOM_COUNT) + 1,
                tags=(),
            )
        )
    for index, name in enumerate(VIP_ROOM_NAMES):
        rooms.append(
            Room(
                id=f"vip{index + 1}",
                name=name,
                status=RoomStatus.VACANT,
                is_vip=True,
                floor="upper",
                column=index + 1,
                tags=("VIP",),
            )
        )
    return rooms
