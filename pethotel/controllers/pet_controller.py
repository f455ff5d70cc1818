"""HTTP controller layer for pet profiles, daily care logs and owner messages."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from pethotel.controllers.dependencies import (
    get_care_service,
    get_pet_service,
    require_admin,
    to_http_exception,
)
from pethotel.domain.errors import HotelError
from pethotel.domain.models import (
    CareMentalStatus,
    DailyCareLog,
    FeedingStatus,
    LitterStatus,
    Pet,
    PetGender,
    PetType,
)
from pethotel.services.care_service import CareService
from pethotel.services.pet_service import PetService
from pethotel.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["pets"], dependencies=[Depends(require_admin)])


class PetDetails(BaseModel):
    type: PetType = PetType.CAT
    gender: PetGender = PetGender.UNKNOWN
    breed: str = ""
    age: float = Field(default=0, ge=0, allow_inf_nan=False)
    chip_number: str = ""
    owner_name: str = ""
    owner_phone: str = ""
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
    familiar_hospital: str = ""
    medical_notes: str = ""
    dietary_needs: str = ""
    photo_url: str = ""
    litter_type: str = ""
    feeding_habit: str = ""
    allergens: str = ""


class PetCreateRequest(PetDetails):
    name: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value.strip()


class PetUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[PetType] = None
    gender: Optional[PetGender] = None
    breed: Optional[str] = None
    age: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    chip_number: Optional[str] = None
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    familiar_hospital: Optional[str] = None
    medical_notes: Optional[str] = None
    dietary_needs: Optional[str] = None
    photo_url: Optional[str] = None
    litter_type: Optional[str] = None
    feeding_habit: Optional[str] = None
    allergens: Optional[str] = None


class QuickAddRequest(BaseModel):
    name: str = Field(min_length=1)


class PetResponse(PetDetails):
    id: str
    name: str

    @classmethod
    def from_domain(cls, pet: Pet) -> "PetResponse":
        return cls(
            id=pet.id,
            name=pet.name,
            type=pet.type,
            gender=pet.gender,
            breed=pet.breed,
            age=pet.age,
            chip_number=pet.chip_number,
            owner_name=pet.owner_name,
            owner_phone=pet.owner_phone,
            emergency_contact_name=pet.emergency_contact_name,
            emergency_contact_phone=pet.emergency_contact_phone,
            familiar_hospital=pet.familiar_hospital,
            medical_notes=pet.medical_notes,
            dietary_needs=pet.dietary_needs,
            photo_url=pet.photo_url,
            litter_type=pet.litter_type,
            feeding_habit=pet.feeding_habit,
            allergens=pet.allergens,
        )


class InHousePetResponse(BaseModel):
    pet: PetResponse
    booking_id: str
    room_number: str
    check_in: date
    check_out: date
    has_log: bool


class CareLogRequest(BaseModel):
    feeding_status: FeedingStatus = FeedingStatus.FINISHED
    litter_status: LitterStatus = LitterStatus.FORMED
    mental_status: CareMentalStatus = CareMentalStatus.FULL_ENERGY
    mood: str = ""
    notes: str = ""
    photo_url: Optional[str] = None


class CareLogResponse(BaseModel):
    id: str
    pet_id: str
    log_date: date
    feeding_status: FeedingStatus
    litter_status: LitterStatus
    mental_status: CareMentalStatus
    mood: str
    notes: str
    photo_url: Optional[str] = None

    @classmethod
    def from_domain(cls, log: DailyCareLog) -> "CareLogResponse":
        return cls(
            id=log.id,
            pet_id=log.pet_id,
            log_date=log.date,
            feeding_status=log.feeding_status,
            litter_status=log.litter_status,
            mental_status=log.mental_status,
            mood=log.mood,
            notes=log.notes,
            photo_url=log.photo_url,
        )


class CareMessageRequest(BaseModel):
    feeding_status: FeedingStatus
    litter_status: LitterStatus
    mental_status: CareMentalStatus


class GeneratedTextResponse(BaseModel):
    pet_id: str
    text: str


def _unexpected(action: str, exc: Exception) -> HTTPException:
    logger.exception("Unexpected failure while trying to %s", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


# --- pets -----------------------------------------------------------------------


@router.get("/pets", response_model=list[PetResponse], status_code=status.HTTP_200_OK)
async def list_pets(
    q: Optional[str] = None,
    smart: bool = False,
    service: PetService = Depends(get_pet_service),
) -> list[PetResponse]:
    """List pets; ``q`` filters by name or breed, ``smart`` asks the text generator."""
    try:
        if smart and q:
            pets = service.smart_search(q)
        else:
            pets = service.search_pets(q or "")
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("search pets", exc) from exc
    return [PetResponse.from_domain(pet) for pet in pets]


@router.post("/pets", response_model=PetResponse, status_code=status.HTTP_201_CREATED)
async def create_pet(
    payload: PetCreateRequest,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    details = payload.model_dump(exclude={"name"})
    try:
        pet = service.create_pet(payload.name, **details)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("create pet", exc) from exc
    return PetResponse.from_domain(pet)


@router.post("/pets/quick_add", response_model=PetResponse, status_code=status.HTTP_201_CREATED)
async def quick_add_pet(
    payload: QuickAddRequest,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    """Create a placeholder profile straight from the booking form."""
    try:
        pet = service.quick_add_pet(payload.name)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return PetResponse.from_domain(pet)


@router.get("/pets/{pet_id}", response_model=PetResponse, status_code=status.HTTP_200_OK)
async def get_pet(
    pet_id: str,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    try:
        pet = service.get_pet(pet_id)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return PetResponse.from_domain(pet)


@router.patch("/pets/{pet_id}", response_model=PetResponse, status_code=status.HTTP_200_OK)
async def update_pet(
    pet_id: str,
    payload: PetUpdateRequest,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    try:
        pet = service.update_pet(pet_id, **payload.model_dump(exclude_none=True))
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("update pet", exc) from exc
    return PetResponse.from_domain(pet)


@router.delete("/pets/{pet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pet(
    pet_id: str,
    service: PetService = Depends(get_pet_service),
) -> None:
    try:
        service.delete_pet(pet_id)
    except HotelError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/pets/{pet_id}/care_tips",
    response_model=GeneratedTextResponse,
    status_code=status.HTTP_200_OK,
)
async def care_tips(
    pet_id: str,
    service: CareService = Depends(get_care_service),
) -> GeneratedTextResponse:
    try:
        text = service.care_tips(pet_id)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return GeneratedTextResponse(pet_id=pet_id, text=text)


@router.get(
    "/pets/{pet_id}/welcome_message",
    response_model=GeneratedTextResponse,
    status_code=status.HTTP_200_OK,
)
async def welcome_message(
    pet_id: str,
    service: CareService = Depends(get_care_service),
) -> GeneratedTextResponse:
    try:
        text = service.welcome_message(pet_id)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return GeneratedTextResponse(pet_id=pet_id, text=text)


# --- daily care ---------------------------------------------------------------------


@router.get("/care/in_house", response_model=list[InHousePetResponse], status_code=status.HTTP_200_OK)
async def pets_in_house(
    day: Optional[date] = None,
    service: CareService = Depends(get_care_service),
) -> list[InHousePetResponse]:
    target = day or date.today()
    try:
        stays = service.pets_in_house(target)
        logged = {log.pet_id for log in service.list_care_logs(target)}
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return [
        InHousePetResponse(
            pet=PetResponse.from_domain(stay.pet),
            booking_id=stay.booking.id,
            room_number=stay.room_number,
            check_in=stay.booking.check_in,
            check_out=stay.booking.check_out,
            has_log=stay.pet.id in logged,
        )
        for stay in stays
    ]


@router.get("/care/logs", response_model=list[CareLogResponse], status_code=status.HTTP_200_OK)
async def list_care_logs(
    day: Optional[date] = None,
    service: CareService = Depends(get_care_service),
) -> list[CareLogResponse]:
    try:
        logs = service.list_care_logs(day)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return [CareLogResponse.from_domain(log) for log in logs]


@router.put(
    "/care/logs/{pet_id}/{day}",
    response_model=CareLogResponse,
    status_code=status.HTTP_200_OK,
)
async def save_care_log(
    pet_id: str,
    day: date,
    payload: CareLogRequest,
    service: CareService = Depends(get_care_service),
) -> CareLogResponse:
    try:
        log = service.save_care_log(
            pet_id,
            day,
            feeding_status=payload.feeding_status,
            litter_status=payload.litter_status,
            mental_status=payload.mental_status,
            mood=payload.mood,
            notes=payload.notes,
            photo_url=payload.photo_url,
        )
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        raise _unexpected("save care log", exc) from exc
    return CareLogResponse.from_domain(log)


@router.post(
    "/care/messages/{pet_id}",
    response_model=GeneratedTextResponse,
    status_code=status.HTTP_200_OK,
)
async def draft_care_message(
    pet_id: str,
    payload: CareMessageRequest,
    service: CareService = Depends(get_care_service),
) -> GeneratedTextResponse:
    """Draft a chatty owner update; a template text is returned when generation fails."""
    try:
        text = service.draft_care_message(
            pet_id,
            payload.feeding_status,
            payload.litter_status,
            payload.mental_status,
        )
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return GeneratedTextResponse(pet_id=pet_id, text=text)
