"""Tests for arrival inspections, daily care logs and owner messages."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from pethotel.domain.errors import (
    RecordNotFoundError,
    TerminalStateViolationError,
    ValidationFailedError,
)
from pethotel.domain.models import (
    Booking,
    BookingStatus,
    CareMentalStatus,
    EarStatus,
    FeedingStatus,
    LitterStatus,
    Pet,
    PreCheckRecord,
    UNASSIGNED_ROOM,
)
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.services.care_service import CARE_TIPS_FALLBACK, WELCOME_FALLBACK, CareService
from pethotel.services.text_generation_service import GenerationError
from pethotel.utils.config import get_settings


class _ScriptedGenerator:
    def __init__(self, reply: str = "generated", error: bool = False) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise GenerationError("quota exceeded")
        return self.reply


def _build_service(tmp_path, generator=None) -> tuple[CareService, HotelRepository]:
    get_settings.cache_clear()
    settings = replace(get_settings(), snapshot_database_path=tmp_path / "care.db")
    repository = HotelRepository(settings)
    repository.put_pet(Pet(id="p1", name="大橘", owner_name="陳大文"))
    repository.put_pet(Pet(id="p2", name="咪咪", owner_name="林小姐"))
    repository.put_booking(
        Booking(
            id="b1",
            pet_ids=("p1", "p2"),
            check_in=date(2024, 5, 1),
            check_out=date(2024, 5, 4),
            status=BookingStatus.CONFIRMED,
            room_number="VIP 01",
        )
    )
    service = CareService(
        repository=repository,
        settings=settings,
        text_generator=generator or _ScriptedGenerator(error=True),
    )
    return service, repository


def _record(**overrides) -> PreCheckRecord:
    values = {"booking_id": "b1", "pet_id": "p1", "date": date(2024, 5, 1), "weight": 5.2}
    values.update(overrides)
    return PreCheckRecord(**values)


# --- pre-check ---

def test_pre_check_checks_booking_in(tmp_path) -> None:
    service, repository = _build_service(tmp_path)

    saved = service.record_pre_check(_record(ear_status=EarStatus.INFLAMED))

    assert repository.get_booking("b1").status is BookingStatus.CHECKED_IN
    assert service.get_pre_check("b1", "p1") == saved
    assert saved.abnormal_findings() == {"耳朵": "發炎"}
    assert saved.ai_summary is None


def test_pre_check_overwrites_previous_record(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    service.record_pre_check(_record(weight=5.0))
    service.record_pre_check(_record(weight=5.4))

    assert repository.get_pre_check("b1", "p1").weight == 5.4
    assert len(repository.list_pre_check_records("b1")) == 1


def test_pre_check_adds_generated_summary(tmp_path) -> None:
    generator = _ScriptedGenerator(reply="大橘已安全入住")
    service, _ = _build_service(tmp_path, generator)

    saved = service.record_pre_check(_record(ear_status=EarStatus.INFLAMED), generate_summary=True)

    assert saved.ai_summary == "大橘已安全入住"
    assert "陳大文" in generator.prompts[0]
    assert "耳朵（發炎）" in generator.prompts[0]


def test_failed_summary_never_blocks_the_save(tmp_path) -> None:
    service, repository = _build_service(tmp_path, _ScriptedGenerator(error=True))

    saved = service.record_pre_check(
        _record(ai_summary="earlier summary"), generate_summary=True
    )

    assert saved.ai_summary == "earlier summary"
    assert repository.get_booking("b1").status is BookingStatus.CHECKED_IN


@pytest.mark.parametrize(
    ("overrides", "error"),
    [
        ({"weight": 0}, ValidationFailedError),
        ({"weight": float("nan")}, ValidationFailedError),
        ({"pet_id": "p9"}, ValidationFailedError),
        ({"booking_id": "b9"}, RecordNotFoundError),
    ],
)
def test_pre_check_rejects_bad_records(tmp_path, overrides, error) -> None:
    service, repository = _build_service(tmp_path)
    with pytest.raises(error):
        service.record_pre_check(_record(**overrides))
    assert repository.list_pre_check_records() == []
    assert repository.get_booking("b1").status is BookingStatus.CONFIRMED


def test_pre_check_requires_active_booking_with_room(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    booking = repository.get_booking("b1")

    repository.put_booking(replace(booking, room_number=UNASSIGNED_ROOM, status=BookingStatus.PENDING))
    with pytest.raises(ValidationFailedError):
        service.record_pre_check(_record())

    repository.put_booking(replace(booking, status=BookingStatus.CANCELLED))
    with pytest.raises(TerminalStateViolationError):
        service.record_pre_check(_record())
    assert repository.list_pre_check_records() == []


# --- in-house pets and care logs ---

def test_pets_in_house_includes_departure_day(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    assert service.pets_in_house("2024-05-02") == []

    service.record_pre_check(_record())
    names = [stay.pet.name for stay in service.pets_in_house("2024-05-04")]
    assert sorted(names) == sorted(["大橘", "咪咪"])
    assert names == sorted(names)
    assert {stay.room_number for stay in service.pets_in_house("2024-05-01")} == {"VIP 01"}
    assert service.pets_in_house("2024-05-05") == []


def test_care_log_is_one_per_pet_per_day(tmp_path) -> None:
    service, repository = _build_service(tmp_path)

    first = service.save_care_log("p1", "2024-05-02", feeding_status=FeedingStatus.LEFT_SOME)
    second = service.save_care_log(
        "p1",
        "2024-05-02",
        feeding_status=FeedingStatus.FINISHED,
        litter_status=LitterStatus.SOFT,
        mood="很愛撒嬌",
    )
    service.save_care_log("p2", "2024-05-02")
    service.save_care_log("p1", "2024-05-03")

    assert second.id == first.id
    assert second.litter_status is LitterStatus.SOFT
    assert len(service.list_care_logs("2024-05-02")) == 2
    assert len(service.list_care_logs()) == 3
    assert repository.get_care_log("p1", date(2024, 5, 2)).mood == "很愛撒嬌"


def test_care_log_requires_known_pet(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    with pytest.raises(RecordNotFoundError):
        service.save_care_log("p9", "2024-05-02")


# --- owner messages ---

def test_care_message_uses_generator_when_available(tmp_path) -> None:
    generator = _ScriptedGenerator(reply="大橘今天吃光光！")
    service, _ = _build_service(tmp_path, generator)

    message = service.draft_care_message(
        "p1", FeedingStatus.FINISHED, LitterStatus.FORMED, CareMentalStatus.CALM
    )

    assert message == "大橘今天吃光光！"
    assert "穩重安靜" in generator.prompts[0]


def test_care_message_falls_back_to_template(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    message = service.draft_care_message(
        "p1", FeedingStatus.POOR_APPETITE, LitterStatus.SOFT, CareMentalStatus.SLUGGISH
    )
    assert message.startswith("大橘")
    assert "沒啥胃口" in message and "懶懶的" in message


def test_tips_and_welcome_fall_back(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    assert service.care_tips("p1") == CARE_TIPS_FALLBACK
    assert service.welcome_message("p2") == WELCOME_FALLBACK
    with pytest.raises(RecordNotFoundError):
        service.care_tips("p9")
