"""Check-in inspections, daily care logs and owner messages."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

from pethotel.domain.constraints import DateLike, parse_date
from pethotel.domain.errors import RecordNotFoundError, ValidationFailedError
from pethotel.domain.models import (
    Booking,
    BookingStatus,
    CareMentalStatus,
    DailyCareLog,
    FeedingStatus,
    LitterStatus,
    Pet,
    PreCheckRecord,
)
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.services.booking_service import ensure_transition
from pethotel.services.text_generation_service import (
    GenerationError,
    OpenAITextGenerator,
    TextGenerator,
    care_message_prompt,
    care_tips_prompt,
    pre_check_summary_prompt,
    welcome_message_prompt,
)
from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger, log_event


logger = get_logger(__name__)

CARE_TIPS_FALLBACK = "無法生成照顧建議，請稍後再試。"
WELCOME_FALLBACK = "歡迎入住我們的寵物旅館！"


@dataclass(frozen=True)
class InHousePet:
    pet: Pet
    booking: Booking

    @property
    def room_number(self) -> str:
        return self.booking.room_number


def new_log_id() -> str:
    return f"l{uuid.uuid4().hex[:12]}"


class CareService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
        text_generator: Optional[TextGenerator] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)
        self._text_generator = text_generator or OpenAITextGenerator(self._settings)

    def _pet(self, pet_id: str) -> Pet:
        pet = self._repository.get_pet(pet_id)
        if pet is None:
            raise RecordNotFoundError(f"Pet not found: {pet_id}")
        return pet

    def _generate(self, prompt: str, purpose: str) -> Optional[str]:
        try:
            return self._text_generator.generate(prompt)
        except GenerationError as exc:
            logger.warning("Text generation failed | purpose=%s | error=%s", purpose, exc)
            return None

    # --- in-house pets ---------------------------------------------------------

    def pets_in_house(self, day: DateLike) -> list[InHousePet]:
        """Checked-in pets on ``day``, departure day included so it can still be logged."""
        target = parse_date(day)
        stays: list[InHousePet] = []
        for booking in self._repository.list_bookings():
            if booking.status is not BookingStatus.CHECKED_IN:
                continue
            if not booking.check_in <= target <= booking.check_out:
                continue
            for pet_id in booking.pet_ids:
                pet = self._repository.get_pet(pet_id)
                if pet is not None:
                    stays.append(InHousePet(pet=pet, booking=booking))
        return sorted(stays, key=lambda stay: (stay.room_number, stay.pet.name))

    # --- pre-check ---------------------------------------------------------------

    def get_pre_check(self, booking_id: str, pet_id: str) -> Optional[PreCheckRecord]:
        return self._repository.get_pre_check(booking_id, pet_id)

    def record_pre_check(
        self,
        record: PreCheckRecord,
        generate_summary: bool = False,
    ) -> PreCheckRecord:
        """Store the arrival inspection and mark the booking checked in.

        A failed summary request keeps whatever summary the record already had.
        """
        if not math.isfinite(record.weight) or record.weight <= 0:
            raise ValidationFailedError("weight must be a number greater than 0")

        booking = self._repository.get_booking(record.booking_id)
        if booking is None:
            raise RecordNotFoundError(f"Booking not found: {record.booking_id}")
        if record.pet_id not in booking.pet_ids:
            raise ValidationFailedError(
                f"Pet {record.pet_id} is not part of booking {record.booking_id}"
            )
        pet = self._pet(record.pet_id)
        ensure_transition(booking.status, BookingStatus.CHECKED_IN)
        if not booking.has_room:
            raise ValidationFailedError(
                f"Assign a room to booking {booking.id} before checking in"
            )

        if generate_summary:
            summary = self._generate(pre_check_summary_prompt(pet, record), "pre_check_summary")
            if summary is not None:
                record = replace(record, ai_summary=summary)

        with self._repository.lock:
            current = self._repository.get_booking(record.booking_id)
            if current is None:
                raise RecordNotFoundError(f"Booking not found: {record.booking_id}")
            ensure_transition(current.status, BookingStatus.CHECKED_IN)
            self._repository.put_booking_with_pre_check(
                replace(current, status=BookingStatus.CHECKED_IN), record
            )

        log_event(
            logger,
            "Pre-check recorded",
            booking_id=record.booking_id,
            pet_id=record.pet_id,
            abnormal=",".join(record.abnormal_findings()) or "none",
        )
        return record

    # --- daily care -------------------------------------------------------------

    def list_care_logs(self, day: Optional[DateLike] = None) -> list[DailyCareLog]:
        target = parse_date(day) if day is not None else None
        return self._repository.list_care_logs(target)

    def save_care_log(
        self,
        pet_id: str,
        day: DateLike,
        feeding_status: FeedingStatus = FeedingStatus.FINISHED,
        litter_status: LitterStatus = LitterStatus.FORMED,
        mental_status: CareMentalStatus = CareMentalStatus.FULL_ENERGY,
        mood: str = "",
        notes: str = "",
        photo_url: Optional[str] = None,
    ) -> DailyCareLog:
        """Create or overwrite the single log for ``(pet_id, day)``."""
        target: date = parse_date(day)
        with self._repository.lock:
            self._pet(pet_id)
            existing = self._repository.get_care_log(pet_id, target)
            log = DailyCareLog(
                id=existing.id if existing is not None else new_log_id(),
                pet_id=pet_id,
                date=target,
                feeding_status=FeedingStatus(feeding_status),
                litter_status=LitterStatus(litter_status),
                mental_status=CareMentalStatus(mental_status),
                mood=mood or "",
                notes=notes or "",
                photo_url=photo_url,
            )
            self._repository.put_care_log(log)
        log_event(logger, "Care log saved", pet_id=pet_id, date=target, log_id=log.id)
        return log

    # --- owner messages ------------------------------------------------------------

    def draft_care_message(
        self,
        pet_id: str,
        feeding: FeedingStatus,
        litter: LitterStatus,
        mental: CareMentalStatus,
    ) -> str:
        pet = self._pet(pet_id)
        feeding, litter, mental = FeedingStatus(feeding), LitterStatus(litter), CareMentalStatus(mental)
        message = self._generate(care_message_prompt(pet, feeding, litter, mental), "care_message")
        if message is not None:
            return message
        return (
            f"{pet.name} 今天食慾「{feeding.value}」，精神「{mental.value}」，"
            f"排便「{litter.value}」，在旅館過得很安穩，請放心！"
        )

    def care_tips(self, pet_id: str) -> str:
        pet = self._pet(pet_id)
        return self._generate(care_tips_prompt(pet), "care_tips") or CARE_TIPS_FALLBACK

    def welcome_message(self, pet_id: str) -> str:
        pet = self._pet(pet_id)
        return self._generate(welcome_message_prompt(pet), "welcome_message") or WELCOME_FALLBACK
