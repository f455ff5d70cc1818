"""Shared FastAPI dependency providers and error mapping for the controller layer."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pethotel.domain.errors import (
    HotelError,
    RecordNotFoundError,
    TerminalStateViolationError,
)
from pethotel.repository.snapshot_store import (
    RemoteStoreError,
    SnapshotNotFoundError,
    SnapshotStoreError,
)
from pethotel.services.auth_service import (
    AdminPasswordNotConfiguredError,
    AuthService,
    InvalidCredentialsError,
)
from pethotel.services.availability_service import AvailabilityService
from pethotel.services.booking_service import BookingService
from pethotel.services.care_service import CareService
from pethotel.services.dashboard_service import DashboardService
from pethotel.services.pet_service import PetService
from pethotel.services.sync_service import SyncService
from pethotel.utils.config import get_settings


bearer_scheme = HTTPBearer(auto_error=False)


def _service(request: Request, name: str, label: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = AuthService(settings=get_settings())
        request.app.state.auth_service = service
    return service


def get_booking_service(request: Request) -> BookingService:
    return _service(request, "booking_service", "Booking")


def get_availability_service(request: Request) -> AvailabilityService:
    return _service(request, "availability_service", "Availability")


def get_pet_service(request: Request) -> PetService:
    return _service(request, "pet_service", "Pet")


def get_care_service(request: Request) -> CareService:
    return _service(request, "care_service", "Care")


def get_dashboard_service(request: Request) -> DashboardService:
    return _service(request, "dashboard_service", "Dashboard")


def get_sync_service(request: Request) -> SyncService:
    return _service(request, "sync_service", "Sync")


def to_http_exception(exc: Exception) -> HTTPException:
    """Translate a domain or storage failure into the matching HTTP status."""
    if isinstance(exc, (RecordNotFoundError, SnapshotNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, TerminalStateViolationError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, RemoteStoreError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(exc, SnapshotStoreError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, HotelError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if not auth_service.auth_enabled:
        return
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
        )
    try:
        auth_service.validate_bearer_token(credentials.credentials)
    except (AdminPasswordNotConfiguredError, InvalidCredentialsError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
