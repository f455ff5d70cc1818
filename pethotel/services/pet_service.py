"""Pet profiles: create, edit, search and guarded delete."""

from __future__ import annotations

import uuid
from dataclasses import fields, replace
from typing import Any, Optional

from pethotel.domain.errors import RecordNotFoundError, ValidationFailedError
from pethotel.domain.models import Pet, PetGender, PetType, age_value
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.services.text_generation_service import (
    GenerationError,
    OpenAITextGenerator,
    TextGenerator,
    parse_id_list,
    pet_search_prompt,
)
from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger, log_event


logger = get_logger(__name__)

QUICK_ADD_OWNER = "快速預約建立"
QUICK_ADD_BREED = "米克斯"

_EDITABLE_FIELDS = frozenset(item.name for item in fields(Pet)) - {"id"}


def new_pet_id() -> str:
    return f"p{uuid.uuid4().hex[:12]}"


def _normalize(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(changes) - _EDITABLE_FIELDS)
    if unknown:
        raise ValidationFailedError(f"Unknown pet fields: {', '.join(unknown)}")
    normalized = dict(changes)
    if "name" in normalized:
        name = str(normalized["name"] or "").strip()
        if not name:
            raise ValidationFailedError("Pet name must not be empty")
        normalized["name"] = name
    try:
        if "type" in normalized:
            normalized["type"] = PetType(normalized["type"])
        if "gender" in normalized:
            normalized["gender"] = PetGender(normalized["gender"])
        if "age" in normalized:
            normalized["age"] = age_value(normalized["age"])
    except (TypeError, ValueError) as exc:
        raise ValidationFailedError(f"Invalid pet details: {exc}") from exc
    if normalized.get("age", 0) < 0:
        raise ValidationFailedError("Pet age must be >= 0")
    for key in _EDITABLE_FIELDS - {"name", "type", "gender", "age"}:
        if key in normalized:
            normalized[key] = str(normalized[key] or "").strip()
    return normalized


class PetService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
        text_generator: Optional[TextGenerator] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)
        self._text_generator = text_generator or OpenAITextGenerator(self._settings)

    def get_pet(self, pet_id: str) -> Pet:
        pet = self._repository.get_pet(pet_id)
        if pet is None:
            raise RecordNotFoundError(f"Pet not found: {pet_id}")
        return pet

    def list_pets(self) -> list[Pet]:
        return sorted(self._repository.list_pets(), key=lambda pet: (pet.name, pet.id))

    def search_pets(self, term: str) -> list[Pet]:
        """Case-insensitive match on name or breed; a blank term lists every pet."""
        needle = (term or "").strip().casefold()
        if not needle:
            return self.list_pets()
        return [
            pet
            for pet in self.list_pets()
            if needle in pet.name.casefold() or needle in pet.breed.casefold()
        ]

    def smart_search(self, query: str) -> list[Pet]:
        """Free-text search ("allergic to chicken") answered by the text generator.

        Falls back to ``search_pets`` when generation is unavailable.
        """
        if not (query or "").strip():
            return self.list_pets()
        pets = self.list_pets()
        try:
            matched_ids = parse_id_list(
                self._text_generator.generate(pet_search_prompt(query.strip(), pets))
            )
        except GenerationError as exc:
            logger.warning("Smart search unavailable, using plain search | error=%s", exc)
            return self.search_pets(query)
        by_id = {pet.id: pet for pet in pets}
        return [by_id[pet_id] for pet_id in dict.fromkeys(matched_ids) if pet_id in by_id]

    def create_pet(self, name: str, **details: Any) -> Pet:
        values = _normalize({"name": name, **details})
        pet = Pet(id=new_pet_id(), **values)
        self._repository.put_pet(pet)
        log_event(logger, "Pet created", pet_id=pet.id, name=pet.name)
        return pet

    def quick_add_pet(self, name: str) -> Pet:
        """Create a placeholder profile from the booking form with only a name."""
        return self.create_pet(name, owner_name=QUICK_ADD_OWNER, breed=QUICK_ADD_BREED)

    def update_pet(self, pet_id: str, **changes: Any) -> Pet:
        values = _normalize(changes)
        with self._repository.lock:
            updated = replace(self.get_pet(pet_id), **values)
            self._repository.put_pet(updated)
        log_event(logger, "Pet updated", pet_id=pet_id, fields=",".join(sorted(values)))
        return updated

    def delete_pet(self, pet_id: str) -> None:
        with self._repository.lock:
            self.get_pet(pet_id)
            references = self._repository.pet_references(pet_id)
            if references:
                raise ValidationFailedError(
                    f"Pet {pet_id} is still referenced by {', '.join(references)}"
                )
            self._repository.remove_pet(pet_id)
        log_event(logger, "Pet deleted", pet_id=pet_id)
