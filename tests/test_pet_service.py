"""Tests for pet profiles, plain search and generated smart search."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from pethotel.domain.errors import RecordNotFoundError, ValidationFailedError
from pethotel.domain.models import Booking, PetGender, PetType
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.services.pet_service import QUICK_ADD_BREED, QUICK_ADD_OWNER, PetService
from pethotel.services.text_generation_service import GenerationError
from pethotel.utils.config import get_settings


class _ScriptedGenerator:
    def __init__(self, reply: str = "[]", error: bool = False) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise GenerationError("offline")
        return self.reply


def _build_service(tmp_path, generator=None) -> tuple[PetService, HotelRepository]:
    get_settings.cache_clear()
    settings = replace(
        get_settings(),
        snapshot_database_path=tmp_path / "pets.db",
        text_generation_api_key=None,
    )
    repository = HotelRepository(settings)
    service = PetService(
        repository=repository,
        settings=settings,
        text_generator=generator or _ScriptedGenerator(error=True),
    )
    return service, repository


def test_create_pet_normalizes_details(tmp_path) -> None:
    service, repository = _build_service(tmp_path)

    pet = service.create_pet(
        "  大橘 ",
        type="貓",
        gender="公",
        age="4",
        breed=" 米克斯 ",
        allergens="雞肉",
    )

    assert pet.id.startswith("p")
    assert pet.name == "大橘"
    assert pet.gender is PetGender.MALE
    assert pet.type is PetType.CAT
    assert pet.age == 4
    assert pet.breed == "米克斯"
    assert repository.get_pet(pet.id) == pet


@pytest.mark.parametrize(
    "details",
    [
        {"name": "   "},
        {"name": "咪咪", "age": -1},
        {"name": "咪咪", "age": "two"},
        {"name": "咪咪", "age": float("inf")},
        {"name": "咪咪", "gender": "male"},
        {"name": "咪咪", "favourite_toy": "ball"},
    ],
)
def test_create_pet_rejects_bad_details(tmp_path, details) -> None:
    service, repository = _build_service(tmp_path)
    name = details.pop("name")
    with pytest.raises(ValidationFailedError):
        service.create_pet(name, **details)
    assert repository.list_pets() == []


def test_fractional_age_is_kept(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    kitten = service.create_pet("小米", age=0.5)
    assert repository.get_pet(kitten.id).age == 0.5
    assert service.update_pet(kitten.id, age="1.0").age == 1


def test_quick_add_fills_placeholder_owner(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    pet = service.quick_add_pet("豆豆")
    assert pet.owner_name == QUICK_ADD_OWNER
    assert pet.breed == QUICK_ADD_BREED


def test_update_pet_changes_only_given_fields(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    pet = service.create_pet("咪咪", breed="布偶貓", owner_name="林小姐")

    updated = service.update_pet(pet.id, owner_phone="0922-111-222", age=3)

    assert updated.owner_phone == "0922-111-222"
    assert updated.age == 3
    assert updated.breed == "布偶貓"
    with pytest.raises(RecordNotFoundError):
        service.update_pet("missing", age=1)


def test_delete_pet_refuses_referenced_profiles(tmp_path) -> None:
    service, repository = _build_service(tmp_path)
    kept = service.create_pet("大橘")
    loose = service.create_pet("路過")
    repository.put_booking(
        Booking(id="b1", pet_ids=(kept.id,), check_in=date(2024, 5, 1), check_out=date(2024, 5, 2))
    )

    with pytest.raises(ValidationFailedError):
        service.delete_pet(kept.id)
    service.delete_pet(loose.id)

    assert [pet.id for pet in service.list_pets()] == [kept.id]
    with pytest.raises(RecordNotFoundError):
        service.delete_pet(loose.id)


def test_search_matches_name_or_breed(tmp_path) -> None:
    service, _ = _build_service(tmp_path)
    service.create_pet("Mochi", breed="British Shorthair")
    service.create_pet("大橘", breed="米克斯")

    assert [pet.name for pet in service.search_pets("mochi")] == ["Mochi"]
    assert [pet.name for pet in service.search_pets("shorthair")] == ["Mochi"]
    assert [pet.name for pet in service.search_pets("米克斯")] == ["大橘"]
    assert len(service.search_pets("  ")) == 2


def test_smart_search_uses_generated_ids(tmp_path) -> None:
    generator = _ScriptedGenerator()
    service, _ = _build_service(tmp_path, generator)
    chicken = service.create_pet("大橘", allergens="雞肉")
    service.create_pet("咪咪", allergens="大豆")
    generator.reply = f'```json\n["{chicken.id}", "ghost", "{chicken.id}"]\n```'

    results = service.smart_search("對雞肉過敏")

    assert [pet.id for pet in results] == [chicken.id]
    assert "對雞肉過敏" in generator.prompts[0]
    assert "雞肉" in generator.prompts[0]


def test_smart_search_falls_back_to_plain_search(tmp_path) -> None:
    service, _ = _build_service(tmp_path, _ScriptedGenerator(error=True))
    service.create_pet("大橘", breed="米克斯")
    service.create_pet("咪咪", breed="布偶貓")

    assert [pet.name for pet in service.smart_search("布偶")] == ["咪咪"]


def test_smart_search_falls_back_on_unparseable_reply(tmp_path) -> None:
    service, _ = _build_service(tmp_path, _ScriptedGenerator(reply="no matches, sorry"))
    service.create_pet("大橘", breed="米克斯")

    assert [pet.name for pet in service.smart_search("大橘")] == ["大橘"]
