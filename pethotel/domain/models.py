"""Domain records for rooms, pets, bookings and care notes.

Enumeration values are the labels stored in hotel backups, so documents
written by earlier versions of the dashboard load unchanged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Optional, Union


UNASSIGNED_ROOM = "未分配"


class PetType(str, Enum):
    CAT = "貓"
    OTHER = "其他"


class PetGender(str, Enum):
    MALE = "公"
    FEMALE = "母"
    UNKNOWN = "未知"


class BookingStatus(str, Enum):
    PENDING = "待處理"
    CONFIRMED = "安排入住"
    CHECKED_IN = "已入住"
    CHECKED_OUT = "已退房"
    CANCELLED = "已取消"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED)


class RoomStatus(str, Enum):
    VACANT = "空房"
    OCCUPIED = "入住中"
    MAINTENANCE = "清潔維護"
    COMBINED = "已合併"


class MentalStatus(str, Enum):
    ENERGETIC = "活力"
    CALM = "平靜"
    NERVOUS = "緊張"
    FEARFUL = "恐懼"


class SkinStatus(str, Enum):
    HEALTHY = "健康"
    SWOLLEN = "紅腫"
    WOUNDED = "有傷口"
    PARASITES = "有寄生蟲"


class EarStatus(str, Enum):
    CLEAN = "乾淨"
    ODOR = "異味"
    INFLAMED = "發炎"
    EXCESS_WAX = "耳垢多"


class EyeNoseStatus(str, Enum):
    NORMAL = "正常"
    DISCHARGE = "分泌物多"
    SNEEZING = "打噴嚏"


class TeethStatus(str, Enum):
    HEALTHY = "健康"
    TARTAR = "牙結石"
    GUM_INFLAMMATION = "牙齦紅腫"
    ODOR = "有異味"


class LimbStatus(str, Enum):
    NORMAL = "正常"
    LONG_NAILS = "指甲過長"
    PAW_PAD_ISSUE = "肉球異常"
    GAIT_ISSUE = "行走異常"


class FeedingStatus(str, Enum):
    FINISHED = "全部吃完"
    LEFT_SOME = "剩下一點"
    POOR_APPETITE = "沒啥胃口"
    NOT_EATEN = "未進食"


class LitterStatus(str, Enum):
    FORMED = "漂亮成型"
    SOFT = "有點軟便"
    DIARRHEA = "拉肚子了"
    NONE_YET = "還沒便便"


class CareMentalStatus(str, Enum):
    FULL_ENERGY = "電力滿格"
    CALM = "穩重安靜"
    SLUGGISH = "懶懶的"
    NERVOUS = "顯得緊張"


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    status: RoomStatus
    is_vip: bool
    floor: str
    column: int
    tags: tuple[str, ...] = ()
    combined_with: Optional[str] = None

    @property
    def in_maintenance(self) -> bool:
        return self.status is RoomStatus.MAINTENANCE

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "isVip": self.is_vip,
            "floor": self.floor,
            "column": self.column,
            "tags": list(self.tags),
        }
        if self.combined_with is not None:
            record["combinedWith"] = self.combined_with
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Room":
        # Older backups call the VIP flag ``isLarge``.
        is_vip = record.get("isVip", record.get("isLarge", False))
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            status=RoomStatus(record.get("status", RoomStatus.VACANT.value)),
            is_vip=bool(is_vip),
            floor=str(record.get("floor", "upper")),
            column=int(record.get("column", 1)),
            tags=tuple(str(tag) for tag in record.get("tags", [])),
            combined_with=record.get("combinedWith"),
        )


def age_value(value: Any) -> float:
    """Read a pet age as a number of years; whole years stay ``int``."""
    age = float(value or 0)
    if not math.isfinite(age):
        raise ValueError(f"age must be a finite number, got {value!r}")
    return int(age) if age.is_integer() else age


@dataclass(frozen=True)
class Pet:
    id: str
    name: str
    type: PetType = PetType.CAT
    gender: PetGender = PetGender.UNKNOWN
    breed: str = ""
    age: float = 0
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

    _RECORD_KEYS: ClassVar[dict[str, str]] = {
        "chip_number": "chipNumber",
        "owner_name": "ownerName",
        "owner_phone": "ownerPhone",
        "emergency_contact_name": "emergencyContactName",
        "emergency_contact_phone": "emergencyContactPhone",
        "familiar_hospital": "familiarHospital",
        "medical_notes": "medicalNotes",
        "dietary_needs": "dietaryNeeds",
        "photo_url": "photoUrl",
        "litter_type": "litterType",
        "feeding_habit": "feedingHabit",
    }

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "gender": self.gender.value,
            "breed": self.breed,
            "age": self.age,
            "allergens": self.allergens,
        }
        for attribute, key in self._RECORD_KEYS.items():
            record[key] = getattr(self, attribute)
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Pet":
        text_fields = {
            attribute: str(record.get(key) or "")
            for attribute, key in cls._RECORD_KEYS.items()
        }
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            type=PetType(record.get("type", PetType.CAT.value)),
            gender=PetGender(record.get("gender", PetGender.UNKNOWN.value)),
            breed=str(record.get("breed") or ""),
            age=age_value(record.get("age")),
            allergens=str(record.get("allergens") or ""),
            **text_fields,
        )


@dataclass(frozen=True)
class Booking:
    id: str
    pet_ids: tuple[str, ...]
    check_in: date
    check_out: date
    status: BookingStatus = BookingStatus.PENDING
    room_number: str = UNASSIGNED_ROOM
    total_price: float = 0.0
    notes: str = ""

    @property
    def is_active(self) -> bool:
        """Cancelled and checked-out stays no longer hold a room."""
        return not self.status.is_terminal

    @property
    def has_room(self) -> bool:
        return self.room_number != UNASSIGNED_ROOM

    def covers(self, room_name: str, day: date) -> bool:
        return (
            self.is_active
            and self.room_number == room_name
            and self.check_in <= day < self.check_out
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "petIds": list(self.pet_ids),
            "checkIn": self.check_in.isoformat(),
            "checkOut": self.check_out.isoformat(),
            "status": self.status.value,
            "roomNumber": self.room_number,
            "totalPrice": self.total_price,
            "notes": self.notes,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Booking":
        return cls(
            id=str(record["id"]),
            pet_ids=tuple(str(pet_id) for pet_id in record.get("petIds", [])),
            check_in=date.fromisoformat(record["checkIn"]),
            check_out=date.fromisoformat(record["checkOut"]),
            status=BookingStatus(record.get("status", BookingStatus.PENDING.value)),
            room_number=str(record.get("roomNumber") or UNASSIGNED_ROOM),
            total_price=float(record.get("totalPrice") or 0),
            notes=str(record.get("notes") or ""),
        )


@dataclass(frozen=True)
class PreCheckRecord:
    booking_id: str
    pet_id: str
    date: date
    weight: float
    mental_status: MentalStatus = MentalStatus.ENERGETIC
    skin_status: SkinStatus = SkinStatus.HEALTHY
    ear_status: EarStatus = EarStatus.CLEAN
    eye_nose_status: EyeNoseStatus = EyeNoseStatus.NORMAL
    teeth_status: TeethStatus = TeethStatus.HEALTHY
    limb_status: LimbStatus = LimbStatus.NORMAL
    belongings: str = ""
    staff_notes: str = ""
    temperature: Optional[str] = None
    ai_summary: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.booking_id, self.pet_id)

    def observations(self) -> dict[str, Enum]:
        return {
            "精神": self.mental_status,
            "皮膚": self.skin_status,
            "耳朵": self.ear_status,
            "眼鼻": self.eye_nose_status,
            "牙齒": self.teeth_status,
            "四肢": self.limb_status,
        }

    def abnormal_findings(self) -> dict[str, str]:
        """Observations that differ from the first (healthy) option of their scale."""
        findings: dict[str, str] = {}
        for label, value in self.observations().items():
            healthy = next(iter(type(value)))
            if value is not healthy:
                findings[label] = value.value
        return findings

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "bookingId": self.booking_id,
            "petId": self.pet_id,
            "date": self.date.isoformat(),
            "weight": self.weight,
            "mentalStatus": self.mental_status.value,
            "skinStatus": self.skin_status.value,
            "earStatus": self.ear_status.value,
            "eyeNoseStatus": self.eye_nose_status.value,
            "teethStatus": self.teeth_status.value,
            "limbStatus": self.limb_status.value,
            "belongings": self.belongings,
            "staffNotes": self.staff_notes,
        }
        if self.temperature is not None:
            record["temperature"] = self.temperature
        if self.ai_summary is not None:
            record["aiSummary"] = self.ai_summary
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "PreCheckRecord":
        return cls(
            booking_id=str(record["bookingId"]),
            pet_id=str(record["petId"]),
            date=date.fromisoformat(record["date"]),
            weight=float(record["weight"]),
            mental_status=MentalStatus(record.get("mentalStatus", MentalStatus.ENERGETIC.value)),
            skin_status=SkinStatus(record.get("skinStatus", SkinStatus.HEALTHY.value)),
            ear_status=EarStatus(record.get("earStatus", EarStatus.CLEAN.value)),
            eye_nose_status=EyeNoseStatus(record.get("eyeNoseStatus", EyeNoseStatus.NORMAL.value)),
            teeth_status=TeethStatus(record.get("teethStatus", TeethStatus.HEALTHY.value)),
            limb_status=LimbStatus(record.get("limbStatus", LimbStatus.NORMAL.value)),
            belongings=str(record.get("belongings") or ""),
            staff_notes=str(record.get("staffNotes") or ""),
            temperature=record.get("temperature"),
            ai_summary=record.get("aiSummary"),
        )


@dataclass(frozen=True)
class DailyCareLog:
    id: str
    pet_id: str
    date: date
    feeding_status: FeedingStatus = FeedingStatus.FINISHED
    litter_status: LitterStatus = LitterStatus.FORMED
    mental_status: CareMentalStatus = CareMentalStatus.FULL_ENERGY
    mood: str = ""
    notes: str = ""
    photo_url: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "petId": self.pet_id,
            "date": self.date.isoformat(),
            "feedingStatus": self.feeding_status.value,
            "litterStatus": self.litter_status.value,
            "mentalStatus": self.mental_status.value,
            "mood": self.mood,
            "notes": self.notes,
        }
        if self.photo_url is not None:
            record["photoUrl"] = self.photo_url
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "DailyCareLog":
        return cls(
            id=str(record["id"]),
            pet_id=str(record["petId"]),
            date=date.fromisoformat(record["date"]),
            feeding_status=FeedingStatus(record.get("feedingStatus", FeedingStatus.FINISHED.value)),
            litter_status=LitterStatus(record.get("litterStatus", LitterStatus.FORMED.value)),
            mental_status=CareMentalStatus(
                record.get("mentalStatus", CareMentalStatus.FULL_ENERGY.value)
            ),
            mood=str(record.get("mood") or ""),
            notes=str(record.get("notes") or ""),
            photo_url=record.get("photoUrl"),
        )


@dataclass(frozen=True)
class HotelState:
    """Complete persisted state; the unit exchanged with snapshot stores."""

    bookings: tuple[Booking, ...] = ()
    pets: tuple[Pet, ...] = ()
    rooms: tuple[Room, ...] = ()
    pre_check_records: tuple[PreCheckRecord, ...] = ()
    care_logs: tuple[DailyCareLog, ...] = ()


# --- Availability results -------------------------------------------------


@dataclass(frozen=True)
class Vacant:
    kind: ClassVar[str] = "VACANT"


@dataclass(frozen=True)
class Occupied:
    booking: Booking
    kind: ClassVar[str] = "OCCUPIED"


@dataclass(frozen=True)
class Locked:
    """No direct booking, but a room sharing a wall is occupied."""

    booking: Booking
    partner_room: str
    kind: ClassVar[str] = "LOCKED"


@dataclass(frozen=True)
class Maintenance:
    kind: ClassVar[str] = "MAINTENANCE"


Availability = Union[Vacant, Occupied, Locked, Maintenance]

VACANT = Vacant()
MAINTENANCE = Maintenance()


@dataclass(frozen=True)
class RoomBoardEntry:
    room: Room
    availability: Availability
    pets: tuple[Pet, ...] = field(default_factory=tuple)
