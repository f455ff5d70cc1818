#!/usr/bin/env python3
"""Validate local pet hotel environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pethotel.domain.models import BookingStatus
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.repository.snapshot_store import SqliteSnapshotStore
from pethotel.services.availability_service import AvailabilityService
from pethotel.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="pethotel-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_names = [
        "fastapi",
        "uvicorn",
        "pydantic",
        "requests",
        "openai",
        "pandas",
        "streamlit",
        "httpx",
        "pytest",
    ]
    import_errors: list[str] = []
    for module_name in package_names:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            snapshot_database_path=Path(temp_dir) / "pethotel_validation.db",
        )
        store = SqliteSnapshotStore(validation_settings)
        repository = HotelRepository(validation_settings, store=store)

        # CHECK 3: Snapshot database initialization
        try:
            store.initialize_database()
            ok, line = _print_result("Snapshot database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Snapshot database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo seed and autosave round trip
        today = date.today()
        try:
            repository.seed_demo_data_if_empty(today)
            reloaded = HotelRepository(validation_settings, store=store)
            if not reloaded.load():
                raise RuntimeError("autosaved snapshot was not found")
            if reloaded.snapshot() != repository.snapshot():
                raise RuntimeError("reloaded state differs from saved state")
            ok, line = _print_result(
                "Demo seed + autosave round trip",
                True,
                f": {len(reloaded.list_bookings())} bookings",
            )
        except Exception as exc:
            ok, line = _print_result("Demo seed + autosave round trip", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Room board
        try:
            board = AvailabilityService(repository, validation_settings).room_board(today)
            kinds = {entry.room.name: entry.availability.kind for entry in board}
            checked_in = [
                booking.room_number
                for booking in repository.list_bookings()
                if booking.status is BookingStatus.CHECKED_IN and booking.check_in <= today
            ]
            if len(board) != 15 or any(kinds[name] != "OCCUPIED" for name in checked_in):
                raise RuntimeError(f"unexpected board: {kinds}")
            ok, line = _print_result("Room board", True, f": {len(board)} rooms")
        except Exception as exc:
            ok, line = _print_result("Room board", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Schedule grid for the coming week
        try:
            grid = AvailabilityService(repository, validation_settings).schedule(
                (today + timedelta(days=7)).strftime("%Y-%m")
            )
            if not grid:
                raise RuntimeError("empty schedule grid")
            ok, line = _print_result("Schedule grid", True, f": {len(grid)} cells")
        except Exception as exc:
            ok, line = _print_result("Schedule grid", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Pet Hotel Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
