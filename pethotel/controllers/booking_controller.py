"""HTTP controller layer for bookings, room conflicts and arrival inspections."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from pethotel.controllers.dependencies import (
    get_booking_service,
    get_care_service,
    require_admin,
    to_http_exception,
)
from pethotel.domain.errors import HotelError
from pethotel.domain.models import (
    Booking,
    BookingStatus,
    EarStatus,
    EyeNoseStatus,
    LimbStatus,
    MentalStatus,
    PreCheckRecord,
    SkinStatus,
    TeethStatus,
    UNASSIGNED_ROOM,
)
from pethotel.services.booking_service import BookingService
from pethotel.services.care_service import CareService
from pethotel.utils.config import get_settings
from pethotel.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/bookings", tags=["bookings"], dependencies=[Depends(require_admin)])


def _validate_pet_ids(value: Optional[list[str]]) -> Optional[list[str]]:
    if value is None:
        return None
    cleaned = [item.strip() for item in value]
    if not cleaned or any(not item for item in cleaned):
        raise ValueError("pet_ids must contain at least one non-empty id")
    if len(set(cleaned)) != len(cleaned):
        raise ValueError("pet_ids must not repeat a pet")
    return cleaned


class BookingCreateRequest(BaseModel):
    pet_ids: list[str] = Field(min_length=1)
    check_in: date
    check_out: date
    room_number: str = Field(default=UNASSIGNED_ROOM, min_length=1)
    total_price: float = Field(default=0.0, ge=0.0)
    notes: str = ""
    status: BookingStatus = BookingStatus.PENDING

    @field_validator("pet_ids")
    @classmethod
    def validate_pet_ids(cls, value: list[str]) -> list[str]:
        return _validate_pet_ids(value) or []


class BookingUpdateRequest(BaseModel):
    pet_ids: Optional[list[str]] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    room_number: Optional[str] = Field(default=None, min_length=1)
    total_price: Optional[float] = Field(default=None, ge=0.0)
    notes: Optional[str] = None
    status: Optional[BookingStatus] = None

    @field_validator("pet_ids")
    @classmethod
    def validate_pet_ids(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return _validate_pet_ids(value)


class BookingStatusRequest(BaseModel):
    status: BookingStatus


class BookingResponse(BaseModel):
    id: str
    pet_ids: list[str]
    check_in: date
    check_out: date
    status: BookingStatus
    room_number: str
    total_price: float = Field(ge=0.0)
    notes: str

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            pet_ids=list(booking.pet_ids),
            check_in=booking.check_in,
            check_out=booking.check_out,
            status=booking.status,
            room_number=booking.room_number,
            total_price=booking.total_price,
            notes=booking.notes,
        )


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    monthly_total: Optional[float] = None


class RoomAvailabilityResponse(BaseModel):
    check_in: date
    check_out: date
    unavailable_rooms: list[str]
    selectable_rooms: list[str]


class PreCheckRequest(BaseModel):
    inspected_on: Optional[date] = None
    weight: float = Field(gt=0.0)
    temperature: Optional[str] = None
    mental_status: MentalStatus = MentalStatus.ENERGETIC
    skin_status: SkinStatus = SkinStatus.HEALTHY
    ear_status: EarStatus = EarStatus.CLEAN
    eye_nose_status: EyeNoseStatus = EyeNoseStatus.NORMAL
    teeth_status: TeethStatus = TeethStatus.HEALTHY
    limb_status: LimbStatus = LimbStatus.NORMAL
    belongings: str = ""
    staff_notes: str = ""
    ai_summary: Optional[str] = None
    generate_summary: bool = False


class PreCheckResponse(BaseModel):
    booking_id: str
    pet_id: str
    date: date
    weight: float
    temperature: Optional[str] = None
    mental_status: MentalStatus
    skin_status: SkinStatus
    ear_status: EarStatus
    eye_nose_status: EyeNoseStatus
    teeth_status: TeethStatus
    limb_status: LimbStatus
    belongings: str
    staff_notes: str
    ai_summary: Optional[str] = None
    abnormal_findings: dict[str, str]

    @classmethod
    def from_domain(cls, record: PreCheckRecord) -> "PreCheckResponse":
        return cls(
            booking_id=record.booking_id,
            pet_id=record.pet_id,
            date=record.date,
            weight=record.weight,
            temperature=record.temperature,
            mental_status=record.mental_status,
            skin_status=record.skin_status,
            ear_status=record.ear_status,
            eye_nose_status=record.eye_nose_status,
            teeth_status=record.teeth_status,
            limb_status=record.limb_status,
            belongings=record.belongings,
            staff_notes=record.staff_notes,
            ai_summary=record.ai_summary,
            abnormal_findings=record.abnormal_findings(),
        )


def _unexpected(action: str, exc: Exception) -> HTTPException:
    logger.exception("Unexpected failure while trying to %s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.get("", response_model=BookingListResponse, status_code=status.HTTP_200_OK)
async def list_bookings(
    month: Optional[str] = Query(default=None, pattern=settings.month_regex),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """List every booking, or those touching ``month`` together with its total."""
    try:
        bookings = service.list_bookings(month)
        total = service.monthly_total(month) if month is not None else None
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("list bookings", exc) from exc
    return BookingListResponse(
        bookings=[BookingResponse.from_domain(item) for item in bookings],
        monthly_total=total,
    )


@router.get("/availability", response_model=RoomAvailabilityResponse, status_code=status.HTTP_200_OK)
async def room_availability(
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
) -> RoomAvailabilityResponse:
    try:
        blocked = service.unavailable_rooms(check_in, check_out, exclude_booking_id)
        selectable = service.selectable_rooms(check_in, check_out, exclude_booking_id)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("compute room availability", exc) from exc
    return RoomAvailabilityResponse(
        check_in=check_in,
        check_out=check_out,
        unavailable_rooms=sorted(blocked),
        selectable_rooms=selectable,
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreateRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.create_booking(
            pet_ids=payload.pet_ids,
            check_in=payload.check_in,
            check_out=payload.check_out,
            room_number=payload.room_number,
            total_price=payload.total_price,
            notes=payload.notes,
            status=payload.status,
        )
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("create booking", exc) from exc
    return BookingResponse.from_domain(booking)


@router.get("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
async def get_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.get_booking(booking_id)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return BookingResponse.from_domain(booking)


@router.patch("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
async def update_booking(
    booking_id: str,
    payload: BookingUpdateRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.update_booking(booking_id, **payload.model_dump(exclude_none=True))
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("update booking", exc) from exc
    return BookingResponse.from_domain(booking)


@router.post("/{booking_id}/status", response_model=BookingResponse, status_code=status.HTTP_200_OK)
async def set_booking_status(
    booking_id: str,
    payload: BookingStatusRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.set_status(booking_id, payload.status)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("change booking status", exc) from exc
    return BookingResponse.from_domain(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse, status_code=status.HTTP_200_OK)
async def cancel_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.cancel_booking(booking_id)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return BookingResponse.from_domain(booking)


@router.get(
    "/{booking_id}/pre_checks/{pet_id}",
    response_model=PreCheckResponse,
    status_code=status.HTTP_200_OK,
)
async def get_pre_check(
    booking_id: str,
    pet_id: str,
    service: CareService = Depends(get_care_service),
) -> PreCheckResponse:
    record = service.get_pre_check(booking_id, pet_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No pre-check for booking {booking_id} and pet {pet_id}",
        )
    return PreCheckResponse.from_domain(record)


@router.put(
    "/{booking_id}/pre_checks/{pet_id}",
    response_model=PreCheckResponse,
    status_code=status.HTTP_200_OK,
)
async def record_pre_check(
    booking_id: str,
    pet_id: str,
    payload: PreCheckRequest,
    service: CareService = Depends(get_care_service),
) -> PreCheckResponse:
    """Save the arrival inspection; the booking moves to checked-in."""
    record = PreCheckRecord(
        booking_id=booking_id,
        pet_id=pet_id,
        date=payload.inspected_on or date.today(),
        weight=payload.weight,
        mental_status=payload.mental_status,
        skin_status=payload.skin_status,
        ear_status=payload.ear_status,
        eye_nose_status=payload.eye_nose_status,
        teeth_status=payload.teeth_status,
        limb_status=payload.limb_status,
        belongings=payload.belongings,
        staff_notes=payload.staff_notes,
        temperature=payload.temperature,
        ai_summary=payload.ai_summary,
    )
    try:
        saved = service.record_pre_check(record, generate_summary=payload.generate_summary)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("record pre-check", exc) from exc
    return PreCheckResponse.from_domain(saved)
