"""Tests for the room registry and the standard/VIP interlock relation."""

from __future__ import annotations

import pytest

from pethotel.domain.errors import InvalidRoomError
from pethotel.domain.rooms import (
    all_room_names,
    default_rooms,
    interlock_group,
    is_vip,
    partners_of,
    validate_room_name,
)


def test_registry_lists_fifteen_rooms_in_grid_order() -> None:
    names = all_room_names()
    assert len(names) == 15
    assert names[:10] == tuple(str(number) for number in range(1, 11))
    assert names[10:] == ("VIP 01", "VIP 02", "VIP 03", "VIP 04", "VIP 05")


@pytest.mark.parametrize(
    ("room", "expected"),
    [
        ("1", ("VIP 01",)),
        ("5", ("VIP 05",)),
        ("6", ("VIP 01",)),
        ("10", ("VIP 05",)),
        ("VIP 01", ("1", "6")),
        ("VIP 03", ("3", "8")),
    ],
)
def test_partners_follow_shared_walls(room: str, expected: tuple[str, ...]) -> None:
    assert partners_of(room) == expected


def test_pairing_is_symmetric() -> None:
    for room in all_room_names():
        for partner in partners_of(room):
            assert room in partners_of(partner)


def test_no_room_is_its_own_partner() -> None:
    for room in all_room_names():
        assert room not in partners_of(room)


def test_interlock_group_includes_room_and_partners() -> None:
    assert interlock_group("1") == frozenset({"1", "VIP 01"})
    assert interlock_group("VIP 04") == frozenset({"VIP 04", "4", "9"})


@pytest.mark.parametrize("name", ["0", "11", "VIP 06", "vip 01", "VIP1", "", "Room 1"])
def test_unknown_room_names_are_rejected(name: str) -> None:
    with pytest.raises(InvalidRoomError):
        validate_room_name(name)
    with pytest.raises(InvalidRoomError):
        partners_of(name)


def test_is_vip() -> None:
    assert is_vip("VIP 05")
    assert not is_vip("5")


def test_default_rooms_layout() -> None:
    rooms = {room.name: room for room in default_rooms()}
    assert list(rooms) == list(all_room_names())
    assert rooms["1"].floor == "upper" and rooms["1"].column == 1
    assert rooms["6"].floor == "lower" and rooms["6"].column == 1
    assert rooms["VIP 05"].is_vip and rooms["VIP 05"].column == 5
    assert all(not room.in_maintenance for room in rooms.values())
