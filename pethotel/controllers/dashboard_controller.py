"""Controller layer for login, front-desk statistics, backups and remote sync."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field, field_validator

from pethotel.controllers.dependencies import (
    bearer_scheme,
    get_auth_service,
    get_dashboard_service,
    get_sync_service,
    require_admin,
    to_http_exception,
)
from pethotel.domain.errors import HotelError
from pethotel.repository.snapshot_store import SnapshotStoreError
from pethotel.services.auth_service import (
    AdminPasswordNotConfiguredError,
    AuthService,
    InvalidCredentialsError,
)
from pethotel.services.dashboard_service import DashboardService
from pethotel.services.sync_service import SyncService
from pethotel.utils.config import get_settings
from pethotel.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["dashboard"])


class LoginRequest(BaseModel):
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class HealthResponse(BaseModel):
    status: str
    app_name: str
    app_version: str
    auth_enabled: bool


class SummaryResponse(BaseModel):
    day: date
    occupied: int = Field(ge=0)
    check_ins_today: int = Field(ge=0)
    check_outs_today: int = Field(ge=0)
    monthly_revenue: float = Field(ge=0.0)
    previous_month_revenue: float = Field(ge=0.0)
    revenue_growth: float
    occupancy_rate: int = Field(ge=0, le=100)


class TrendPointResponse(BaseModel):
    month: str = Field(pattern=settings.month_regex)
    revenue: float = Field(ge=0.0)
    occupancy: int = Field(ge=0, le=100)


class SyncRequest(BaseModel):
    sync_key: str = Field(min_length=1, max_length=128)

    @field_validator("sync_key")
    @classmethod
    def validate_sync_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("sync_key must not be blank")
        return value.strip()


class SyncResponse(BaseModel):
    sync_key: str
    bookings: int = Field(ge=0)
    pets: int = Field(ge=0)
    timestamp: str


def _sync_response(sync_key: str, document: dict[str, Any]) -> SyncResponse:
    return SyncResponse(
        sync_key=sync_key,
        bookings=len(document["bookings"]),
        pets=len(document["pets"]),
        timestamp=str(document.get("timestamp", "")),
    )


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health(auth_service: AuthService = Depends(get_auth_service)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        app_name=settings.app_name,
        app_version=settings.app_version,
        auth_enabled=auth_service.auth_enabled,
    )


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        bearer = auth_service.login(payload.password)
        return LoginResponse(access_token=bearer)
    except (AdminPasswordNotConfiguredError, InvalidCredentialsError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login",
        ) from exc


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if credentials is not None:
        auth_service.logout(credentials.credentials)


@router.get(
    "/dashboard/summary",
    response_model=SummaryResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def summary(
    day: Optional[date] = None,
    service: DashboardService = Depends(get_dashboard_service),
) -> SummaryResponse:
    try:
        result = service.summary(day)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return SummaryResponse(
        day=result.day,
        occupied=result.occupied,
        check_ins_today=result.check_ins_today,
        check_outs_today=result.check_outs_today,
        monthly_revenue=result.monthly_revenue,
        previous_month_revenue=result.previous_month_revenue,
        revenue_growth=result.revenue_growth,
        occupancy_rate=result.occupancy_rate,
    )


@router.get(
    "/dashboard/trend",
    response_model=list[TrendPointResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def trend(
    day: Optional[date] = None,
    months: int = 6,
    service: DashboardService = Depends(get_dashboard_service),
) -> list[TrendPointResponse]:
    if not 1 <= months <= 24:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="months must be between 1 and 24",
        )
    try:
        points = service.monthly_trend(day, months)
    except HotelError as exc:
        raise to_http_exception(exc) from exc
    return [
        TrendPointResponse(month=point.month, revenue=point.revenue, occupancy=point.occupancy)
        for point in points
    ]


@router.get(
    "/backup/export",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def export_backup(
    service: SyncService = Depends(get_sync_service),
) -> dict[str, Any]:
    """Full hotel state as one JSON document for offline backup."""
    return service.export_document()


@router.post(
    "/backup/import",
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def import_backup(
    document: dict[str, Any],
    service: SyncService = Depends(get_sync_service),
) -> dict[str, Any]:
    """Replace every record with the uploaded backup; invalid backups change nothing."""
    try:
        return service.import_document(document)
    except (HotelError, SnapshotStoreError) as exc:
        raise to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected backup import failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to import backup",
        ) from exc


@router.post(
    "/sync/push",
    response_model=SyncResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def sync_push(
    payload: SyncRequest,
    service: SyncService = Depends(get_sync_service),
) -> SyncResponse:
    try:
        document = service.push(payload.sync_key)
    except (HotelError, SnapshotStoreError) as exc:
        raise to_http_exception(exc) from exc
    return _sync_response(payload.sync_key, document)


@router.post(
    "/sync/pull",
    response_model=SyncResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def sync_pull(
    payload: SyncRequest,
    service: SyncService = Depends(get_sync_service),
) -> SyncResponse:
    """Overwrite local data with the cloud backup stored under ``sync_key``."""
    try:
        document = service.pull(payload.sync_key)
    except (HotelError, SnapshotStoreError) as exc:
        raise to_http_exception(exc) from exc
    return _sync_response(payload.sync_key, document)
