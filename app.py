"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and services, registers routers, and restores the
last autosaved snapshot at startup.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from pethotel.controllers.booking_controller import router as booking_router
from pethotel.controllers.dashboard_controller import router as dashboard_router
from pethotel.controllers.pet_controller import router as pet_router
from pethotel.controllers.room_controller import router as room_router
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.repository.snapshot_store import (
    RemoteSnapshotStore,
    SnapshotStore,
    SqliteSnapshotStore,
)
from pethotel.services.auth_service import AuthService
from pethotel.services.availability_service import AvailabilityService
from pethotel.services.booking_service import BookingService
from pethotel.services.care_service import CareService
from pethotel.services.dashboard_service import DashboardService
from pethotel.services.pet_service import PetService
from pethotel.services.sync_service import SyncService
from pethotel.services.text_generation_service import OpenAITextGenerator, TextGenerator
from pethotel.utils.config import Settings, get_settings
from pethotel.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    text_generator: Optional[TextGenerator] = None,
    remote_store: Optional[SnapshotStore] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service shares one HotelRepository, so the room board, bookings and
    backups always see the same state. Tests pass their own settings, text
    generator and remote store.
    """
    settings = settings or get_settings()

    # --- Repository (in-memory state with SQLite autosave) ---
    snapshot_store = SqliteSnapshotStore(settings)
    repository = HotelRepository(settings, store=snapshot_store)

    # --- External collaborators ---
    text_generator = text_generator or OpenAITextGenerator(settings)
    remote_store = remote_store or RemoteSnapshotStore(settings)

    # --- Services ---
    booking_service = BookingService(repository=repository, settings=settings)
    availability_service = AvailabilityService(repository=repository, settings=settings)
    pet_service = PetService(
        repository=repository,
        settings=settings,
        text_generator=text_generator,
    )
    care_service = CareService(
        repository=repository,
        settings=settings,
        text_generator=text_generator,
    )
    dashboard_service = DashboardService(repository=repository, settings=settings)
    sync_service = SyncService(
        repository=repository,
        settings=settings,
        remote_store=remote_store,
    )
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(dashboard_router)
    app.include_router(booking_router)
    app.include_router(room_router)
    app.include_router(pet_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.snapshot_store = snapshot_store
    app.state.repository = repository
    app.state.booking_service = booking_service
    app.state.availability_service = availability_service
    app.state.pet_service = pet_service
    app.state.care_service = care_service
    app.state.dashboard_service = dashboard_service
    app.state.sync_service = sync_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Order matters:
      1. Snapshot table must exist before loading.
      2. The last autosave is restored before seeding.
      3. Demo data is only seeded into an empty hotel.
    """
    settings: Settings = app.state.settings
    snapshot_store: SqliteSnapshotStore = app.state.snapshot_store
    repository: HotelRepository = app.state.repository

    logger.info("Startup: initializing snapshot database")
    snapshot_store.initialize_database()

    logger.info("Startup: restoring last autosave (key=%s)", repository.snapshot_key)
    repository.load()

    if settings.seed_demo_data:
        logger.info("Startup: seeding demo hotel (skipped if data already exists)")
        repository.seed_demo_data_if_empty()

    logger.info("Startup complete, front desk ready")


# Module-level app object for uvicorn
app = create_app()
