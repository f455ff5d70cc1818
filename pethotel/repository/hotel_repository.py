"""In-memory source of truth for the hotel, with an injected snapshot store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from threading import RLock
from typing import Any, Callable, Optional

from pethotel.domain.errors import HotelError, ValidationFailedError
from pethotel.domain.models import (
    Booking,
    BookingStatus,
    DailyCareLog,
    HotelState,
    Pet,
    PetGender,
    PetType,
    PreCheckRecord,
    Room,
    UNASSIGNED_ROOM,
)
from pethotel.domain.rooms import all_room_names, default_rooms, is_registered
from pethotel.repository.snapshot_store import (
    Document,
    SnapshotNotFoundError,
    SnapshotStore,
)
from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger, log_event


logger = get_logger(__name__)

REQUIRED_DOCUMENT_KEYS = ("bookings", "pets", "rooms")


def state_to_document(state: HotelState, timestamp: Optional[str] = None) -> Document:
    """Serialize the full state into the JSON document exchanged with stores."""
    return {
        "bookings": [booking.to_record() for booking in state.bookings],
        "pets": [pet.to_record() for pet in state.pets],
        "rooms": [room.to_record() for room in state.rooms],
        "preCheckRecords": [record.to_record() for record in state.pre_check_records],
        "careLogs": [log.to_record() for log in state.care_logs],
        "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
    }


def state_from_document(document: Any) -> HotelState:
    """Parse and validate a state document; raises ``ValidationFailedError``."""
    if not isinstance(document, dict):
        raise ValidationFailedError("Backup document must be a JSON object")
    missing = [key for key in REQUIRED_DOCUMENT_KEYS if not isinstance(document.get(key), list)]
    if missing:
        raise ValidationFailedError(f"Backup document is missing: {', '.join(missing)}")

    try:
        bookings = tuple(Booking.from_record(item) for item in document["bookings"])
        pets = tuple(Pet.from_record(item) for item in document["pets"])
        rooms = tuple(Room.from_record(item) for item in document["rooms"])
        pre_checks = tuple(
            PreCheckRecord.from_record(item) for item in document.get("preCheckRecords") or []
        )
        care_logs = tuple(DailyCareLog.from_record(item) for item in document.get("careLogs") or [])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationFailedError(f"Backup document has an invalid record: {exc}") from exc

    for room in rooms:
        if not is_registered(room.name):
            raise ValidationFailedError(f"Backup document has an unknown room: {room.name}")
    for booking in bookings:
        if booking.room_number != UNASSIGNED_ROOM and not is_registered(booking.room_number):
            raise ValidationFailedError(
                f"Booking {booking.id} references an unknown room: {booking.room_number}"
            )
        if booking.check_in >= booking.check_out:
            raise ValidationFailedError(f"Booking {booking.id} has check_in >= check_out")

    return HotelState(
        bookings=bookings,
        pets=pets,
        rooms=rooms,
        pre_check_records=pre_checks,
        care_logs=care_logs,
    )


@dataclass
class _Tables:
    bookings: dict[str, Booking] = field(default_factory=dict)
    pets: dict[str, Pet] = field(default_factory=dict)
    rooms: dict[str, Room] = field(default_factory=dict)
    pre_checks: dict[tuple[str, str], PreCheckRecord] = field(default_factory=dict)
    care_logs: dict[tuple[str, date], DailyCareLog] = field(default_factory=dict)

    def copy(self) -> "_Tables":
        return _Tables(
            bookings=dict(self.bookings),
            pets=dict(self.pets),
            rooms=dict(self.rooms),
            pre_checks=dict(self.pre_checks),
            care_logs=dict(self.care_logs),
        )

    def replace_with(self, other: "_Tables") -> None:
        self.bookings = other.bookings
        self.pets = other.pets
        self.rooms = other.rooms
        self.pre_checks = other.pre_checks
        self.care_logs = other.care_logs

    def to_state(self) -> HotelState:
        return HotelState(
            bookings=tuple(self.bookings.values()),
            pets=tuple(self.pets.values()),
            rooms=tuple(self.rooms[name] for name in all_room_names() if name in self.rooms),
            pre_check_records=tuple(self.pre_checks.values()),
            care_logs=tuple(self.care_logs.values()),
        )

    @classmethod
    def from_state(cls, state: HotelState) -> "_Tables":
        tables = cls()
        for room in default_rooms():
            tables.rooms[room.name] = room
        for room in state.rooms:
            tables.rooms[room.name] = room
        for booking in state.bookings:
            tables.bookings[booking.id] = booking
        for pet in state.pets:
            tables.pets[pet.id] = pet
        # Newest record first in older backups; keep the first per key.
        for record in state.pre_check_records:
            tables.pre_checks.setdefault(record.key, record)
        for log in state.care_logs:
            tables.care_logs.setdefault((log.pet_id, log.date), log)
        return tables


class HotelRepository:
    """Holds bookings, pets, rooms and care records in memory.

    Every mutation is applied to a copy of the tables, written to the snapshot
    store (when autosave is on), and only then swapped in, so a failed save
    leaves the previous state in place.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[SnapshotStore] = None,
        snapshot_key: Optional[str] = None,
        autosave: Optional[bool] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store
        self._snapshot_key = snapshot_key or self._settings.snapshot_key
        self._autosave = self._settings.snapshot_autosave if autosave is None else autosave
        self._lock = RLock()
        self._tables = _Tables.from_state(HotelState())

    @property
    def lock(self) -> RLock:
        return self._lock

    @property
    def snapshot_key(self) -> str:
        return self._snapshot_key

    def _commit(self, apply: Callable[[_Tables], None]) -> None:
        with self._lock:
            candidate = self._tables.copy()
            apply(candidate)
            if self._autosave and self._store is not None:
                self._store.save(self._snapshot_key, state_to_document(candidate.to_state()))
            self._tables = candidate

    # --- whole-state operations -------------------------------------------

    def snapshot(self) -> HotelState:
        with self._lock:
            return self._tables.to_state()

    def restore(self, state: HotelState) -> None:
        """Replace all state at once (import / remote restore)."""
        self._commit(lambda candidate: candidate.replace_with(_Tables.from_state(state)))
        log_event(
            logger,
            "State restored",
            bookings=len(state.bookings),
            pets=len(state.pets),
            pre_checks=len(state.pre_check_records),
            care_logs=len(state.care_logs),
        )

    def to_document(self) -> Document:
        return state_to_document(self.snapshot())

    def save(self) -> None:
        if self._store is None:
            raise HotelError("No snapshot store configured")
        with self._lock:
            self._store.save(self._snapshot_key, self.to_document())

    def load(self) -> bool:
        """Restore from the snapshot store; returns False when nothing is stored."""
        if self._store is None:
            return False
        try:
            document = self._store.load(self._snapshot_key)
        except SnapshotNotFoundError:
            logger.info("No stored snapshot for key %s; starting empty", self._snapshot_key)
            return False
        state = state_from_document(document)
        with self._lock:
            self._tables = _Tables.from_state(state)
        log_event(logger, "Snapshot loaded", key=self._snapshot_key, bookings=len(state.bookings))
        return True

    def is_empty(self) -> bool:
        with self._lock:
            return not self._tables.bookings and not self._tables.pets

    # --- bookings -----------------------------------------------------------

    def list_bookings(self) -> list[Booking]:
        with self._lock:
            return list(self._tables.bookings.values())

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            return self._tables.bookings.get(booking_id)

    def put_booking(self, booking: Booking) -> None:
        self._commit(lambda tables: tables.bookings.__setitem__(booking.id, booking))

    def put_booking_with_pre_check(self, booking: Booking, record: PreCheckRecord) -> None:
        def apply(tables: _Tables) -> None:
            tables.bookings[booking.id] = booking
            tables.pre_checks[record.key] = record

        self._commit(apply)

    # --- pets ----------------------------------------------------------------

    def list_pets(self) -> list[Pet]:
        with self._lock:
            return list(self._tables.pets.values())

    def get_pet(self, pet_id: str) -> Optional[Pet]:
        with self._lock:
            return self._tables.pets.get(pet_id)

    def put_pet(self, pet: Pet) -> None:
        self._commit(lambda tables: tables.pets.__setitem__(pet.id, pet))

    def remove_pet(self, pet_id: str) -> None:
        self._commit(lambda tables: tables.pets.pop(pet_id, None))

    def pet_references(self, pet_id: str) -> list[str]:
        """Describe every record that still points at ``pet_id``."""
        with self._lock:
            references = [
                f"booking {booking.id}"
                for booking in self._tables.bookings.values()
                if pet_id in booking.pet_ids
            ]
            references.extend(
                f"pre-check {booking_id}"
                for booking_id, record_pet_id in self._tables.pre_checks
                if record_pet_id == pet_id
            )
            references.extend(
                f"care log {log.id}"
                for log in self._tables.care_logs.values()
                if log.pet_id == pet_id
            )
            return references

    # --- rooms ---------------------------------------------------------------

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._tables.to_state().rooms)

    def get_room(self, room_name: str) -> Optional[Room]:
        with self._lock:
            return self._tables.rooms.get(room_name)

    def put_room(self, room: Room) -> None:
        self._commit(lambda tables: tables.rooms.__setitem__(room.name, room))

    def maintenance_rooms(self) -> frozenset[str]:
        with self._lock:
            return frozenset(
                room.name for room in self._tables.rooms.values() if room.in_maintenance
            )

    # --- pre-check records and care logs --------------------------------------

    def list_pre_check_records(self, booking_id: Optional[str] = None) -> list[PreCheckRecord]:
        with self._lock:
            records = list(self._tables.pre_checks.values())
        if booking_id is None:
            return records
        return [record for record in records if record.booking_id == booking_id]

    def get_pre_check(self, booking_id: str, pet_id: str) -> Optional[PreCheckRecord]:
        with self._lock:
            return self._tables.pre_checks.get((booking_id, pet_id))

    def list_care_logs(self, day: Optional[date] = None) -> list[DailyCareLog]:
        with self._lock:
            logs = list(self._tables.care_logs.values())
        if day is None:
            return logs
        return [log for log in logs if log.date == day]

    def get_care_log(self, pet_id: str, day: date) -> Optional[DailyCareLog]:
        with self._lock:
            return self._tables.care_logs.get((pet_id, day))

    def put_care_log(self, log: DailyCareLog) -> None:
        self._commit(lambda tables: tables.care_logs.__setitem__((log.pet_id, log.date), log))

    # --- demo data -------------------------------------------------------------

    def seed_demo_data_if_empty(self, today: Optional[date] = None) -> bool:
        """Seed a small demo hotel only when no bookings or pets exist."""
        if not self.is_empty():
            logger.info("Hotel data already present; skipping demo seed")
            return False

        anchor = today or date.today()
        pets = _demo_pets()
        bookings = [
            Booking(
                id="b1",
                pet_ids=("p1",),
                check_in=anchor - timedelta(days=2),
                check_out=anchor + timedelta(days=3),
                status=BookingStatus.CHECKED_IN,
                room_number="1",
                total_price=4500,
                notes="貓咪很親人，喜歡被拍屁屁",
            ),
            Booking(
                id="b2",
                pet_ids=("p2",),
                check_in=anchor,
                check_out=anchor + timedelta(days=5),
                status=BookingStatus.CHECKED_IN,
                room_number="VIP 02",
                total_price=4750,
                notes="VIP 住宿中",
            ),
        ]

        def apply(tables: _Tables) -> None:
            for pet in pets:
                tables.pets[pet.id] = pet
            for booking in bookings:
                tables.bookings[booking.id] = booking

        self._commit(apply)
        log_event(logger, "Demo data seeded", pets=len(pets), bookings=len(bookings))
        return True


def _demo_pets() -> list[Pet]:
    return [
        Pet(
            id="p1",
            name="大橘",
            type=PetType.CAT,
            gender=PetGender.MALE,
            breed="米克斯",
            age=4,
            chip_number="900138000123456",
            owner_name="陳大文",
            owner_phone="0912-345-678",
            emergency_contact_name="陳太太",
            emergency_contact_phone="0912-888-999",
            familiar_hospital="博愛動物醫院",
            medical_notes="無",
            dietary_needs="只吃乾糧，需定時定量",
            litter_type="豆腐砂 (條狀)",
            feeding_habit="早晚各一餐乾糧，下午偶爾給肉泥",
            allergens="雞肉、螃蟹",
        ),
        Pet(
            id="p2",
            name="咪咪",
            type=PetType.CAT,
            gender=PetGender.FEMALE,
            breed="布偶貓",
            age=2,
            chip_number="900138000654321",
            owner_name="林小姐",
            owner_phone="0922-111-222",
            emergency_contact_name="林先生",
            emergency_contact_phone="0922-333-444",
            familiar_hospital="核心24H動物醫院",
            medical_notes="無",
            dietary_needs="只吃特定品牌濕食",
            litter_type="礦砂 (細砂)",
            feeding_habit="全濕食，一日四餐，少量多餐",
            allergens="大豆、化學香精",
        ),
        Pet(
            id="p3",
            name="豆豆",
            type=PetType.CAT,
            gender=PetGender.MALE,
            breed="英國短毛貓",
            age=1,
            chip_number="900138000789012",
            owner_name="王先生",
            owner_phone="0933-444-555",
            emergency_contact_name="王太太",
            emergency_contact_phone="0933-666-777",
            familiar_hospital="康和貓專科醫院",
            medical_notes="有輕微過敏",
            dietary_needs="無穀飼料",
            litter_type="松木砂",
            feeding_habit="任食制，碗內需隨時有乾糧",
            allergens="無特別已知過敏源",
        ),
    ]
