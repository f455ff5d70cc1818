"""HTTP controller layer for the room board, monthly schedule and room status."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from pethotel.controllers.dependencies import (
    get_availability_service,
    require_admin,
    to_http_exception,
)
from pethotel.domain.errors import HotelError
from pethotel.domain.models import Availability, Locked, Occupied, Room, RoomStatus
from pethotel.domain.rooms import partners_of
from pethotel.services.availability_service import MANUAL_ROOM_STATUSES, AvailabilityService
from pethotel.utils.config import get_settings
from pethotel.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/rooms", tags=["rooms"], dependencies=[Depends(require_admin)])


class RoomResponse(BaseModel):
    id: str
    name: str
    status: RoomStatus
    is_vip: bool
    floor: str
    column: int = Field(ge=1)
    tags: list[str]
    partners: list[str]

    @classmethod
    def from_domain(cls, room: Room) -> "RoomResponse":
        return cls(
            id=room.id,
            name=room.name,
            status=room.status,
            is_vip=room.is_vip,
            floor=room.floor,
            column=room.column,
            tags=list(room.tags),
            partners=list(partners_of(room.name)),
        )


class AvailabilityResponse(BaseModel):
    kind: str
    booking_id: Optional[str] = None
    partner_room: Optional[str] = None

    @classmethod
    def from_domain(cls, availability: Availability) -> "AvailabilityResponse":
        if isinstance(availability, Locked):
            return cls(
                kind=availability.kind,
                booking_id=availability.booking.id,
                partner_room=availability.partner_room,
            )
        if isinstance(availability, Occupied):
            return cls(kind=availability.kind, booking_id=availability.booking.id)
        return cls(kind=availability.kind)


class RoomBoardRow(BaseModel):
    room: RoomResponse
    availability: AvailabilityResponse
    pet_names: list[str]


class RoomBoardResponse(BaseModel):
    day: date
    rooms: list[RoomBoardRow]


class ScheduleCell(BaseModel):
    room_name: str
    day: date
    availability: AvailabilityResponse


class ScheduleResponse(BaseModel):
    month: str
    cells: list[ScheduleCell]


class RoomStatusRequest(BaseModel):
    status: RoomStatus

    @field_validator("status")
    @classmethod
    def validate_manual_status(cls, value: RoomStatus) -> RoomStatus:
        if value not in MANUAL_ROOM_STATUSES:
            allowed = ", ".join(item.value for item in MANUAL_ROOM_STATUSES)
            raise ValueError(f"status must be one of: {allowed}")
        return value


@router.get("", response_model=list[RoomResponse], status_code=status.HTTP_200_OK)
async def list_rooms(
    service: AvailabilityService = Depends(get_availability_service),
) -> list[RoomResponse]:
    return [RoomResponse.from_domain(room) for room in service.list_rooms()]


@router.get("/board", response_model=RoomBoardResponse, status_code=status.HTTP_200_OK)
async def room_board(
    day: Optional[date] = None,
    service: AvailabilityService = Depends(get_availability_service),
) -> RoomBoardResponse:
    """One row per room: the live status for ``day`` (default today) and who is staying."""
    target = day or date.today()
    try:
        entries = service.room_board(target)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected room board failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build room board",
        ) from exc
    return RoomBoardResponse(
        day=target,
        rooms=[
            RoomBoardRow(
                room=RoomResponse.from_domain(entry.room),
                availability=AvailabilityResponse.from_domain(entry.availability),
                pet_names=[pet.name for pet in entry.pets],
            )
            for entry in entries
        ],
    )


@router.get("/schedule", response_model=ScheduleResponse, status_code=status.HTTP_200_OK)
async def schedule(
    month: str = Query(pattern=settings.month_regex),
    service: AvailabilityService = Depends(get_availability_service),
) -> ScheduleResponse:
    try:
        grid = service.schedule(month)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected schedule failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build schedule",
        ) from exc
    return ScheduleResponse(
        month=month,
        cells=[
            ScheduleCell(
                room_name=room_name,
                day=day,
                availability=AvailabilityResponse.from_domain(availability),
            )
            for (room_name, day), availability in grid.items()
        ],
    )


@router.get("/{room_name}/status", response_model=AvailabilityResponse, status_code=status.HTTP_200_OK)
async def room_status(
    room_name: str,
    day: Optional[date] = None,
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        availability = service.status_of(room_name, day or date.today())
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return AvailabilityResponse.from_domain(availability)


@router.put("/{room_name}/status", response_model=RoomResponse, status_code=status.HTTP_200_OK)
async def set_room_status(
    room_name: str,
    payload: RoomStatusRequest,
    service: AvailabilityService = Depends(get_availability_service),
) -> RoomResponse:
    """Flag a room for cleaning or maintenance, or mark it ready again."""
    try:
        room = service.set_room_status(room_name, payload.status)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return RoomResponse.from_domain(room)
