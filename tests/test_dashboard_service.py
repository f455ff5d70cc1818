"""Tests for front-desk statistics."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from pethotel.domain.models import Booking, BookingStatus
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.services.dashboard_service import (
    DashboardService,
    occupancy_rate,
    revenue_for_month,
    revenue_growth,
)
from pethotel.utils.config import get_settings


def _booking(
    booking_id: str,
    room: str,
    check_in: str,
    check_out: str,
    status: BookingStatus = BookingStatus.CONFIRMED,
    price: float = 0,
) -> Booking:
    return Booking(
        id=booking_id,
        pet_ids=("p1",),
        check_in=date.fromisoformat(check_in),
        check_out=date.fromisoformat(check_out),
        status=status,
        room_number=room,
        total_price=price,
    )


def _build_service(tmp_path, bookings) -> DashboardService:
    get_settings.cache_clear()
    settings = replace(get_settings(), snapshot_database_path=tmp_path / "dashboard.db")
    repository = HotelRepository(settings)
    for booking in bookings:
        repository.put_booking(booking)
    return DashboardService(repository=repository, settings=settings)


@pytest.mark.parametrize(
    ("occupied", "expected"),
    [(0, 0), (1, 7), (2, 13), (3, 20), (15, 100), (20, 100)],
)
def test_occupancy_rate_rounds_half_up(occupied: int, expected: int) -> None:
    assert occupancy_rate(occupied) == expected


def test_occupancy_rate_midpoint() -> None:
    assert occupancy_rate(1, room_count=8) == 13


def test_revenue_growth() -> None:
    assert revenue_growth(1500, 1000) == pytest.approx(50.0)
    assert revenue_growth(500, 1000) == pytest.approx(-50.0)
    assert revenue_growth(800, 0) == 100.0
    assert revenue_growth(0, 0) == 0.0


def test_revenue_counts_check_in_month_and_skips_cancelled() -> None:
    bookings = [
        _booking("b1", "1", "2024-04-29", "2024-05-02", price=3000),
        _booking("b2", "2", "2024-05-10", "2024-05-12", price=2000),
        _booking("b3", "3", "2024-05-20", "2024-05-22", BookingStatus.CANCELLED, price=900),
        _booking("b4", "4", "2024-05-25", "2024-05-27", BookingStatus.CHECKED_OUT, price=700),
    ]
    assert revenue_for_month(bookings, "2024-05") == 2700
    assert revenue_for_month(bookings, "2024-04") == 3000


def test_summary_for_a_busy_day(tmp_path) -> None:
    service = _build_service(
        tmp_path,
        [
            _booking("b1", "1", "2024-05-08", "2024-05-13", BookingStatus.CHECKED_IN, 4500),
            _booking("b2", "VIP 02", "2024-05-10", "2024-05-15", BookingStatus.CHECKED_IN, 4750),
            _booking("b3", "3", "2024-05-05", "2024-05-10", BookingStatus.CHECKED_OUT, 2000),
            _booking("b4", "4", "2024-04-10", "2024-04-12", BookingStatus.CHECKED_OUT, 5000),
        ],
    )

    summary = service.summary("2024-05-10")

    assert summary.day == date(2024, 5, 10)
    assert summary.occupied == 2
    assert summary.check_ins_today == 1
    assert summary.check_outs_today == 1
    assert summary.monthly_revenue == 11250
    assert summary.previous_month_revenue == 5000
    assert summary.revenue_growth == pytest.approx(125.0)
    assert summary.occupancy_rate == 13


def test_summary_on_empty_hotel(tmp_path) -> None:
    summary = _build_service(tmp_path, []).summary("2024-01-15")
    assert summary.occupied == 0
    assert summary.occupancy_rate == 0
    assert summary.revenue_growth == 0.0


def test_monthly_trend_covers_requested_months(tmp_path) -> None:
    service = _build_service(
        tmp_path,
        [
            _booking("b1", "1", "2024-02-28", "2024-03-02", BookingStatus.CHECKED_OUT, 3000),
            _booking("b2", "2", "2024-03-10", "2024-03-12", BookingStatus.CANCELLED, 900),
        ],
    )

    trend = service.monthly_trend("2024-03-15", months=3)

    assert [point.month for point in trend] == ["2024-01", "2024-02", "2024-03"]
    assert [point.revenue for point in trend] == [0, 3000, 0]
    # Two nights in February (28, 29) over 15 rooms * 29 days.
    assert trend[1].occupancy == 0
    assert trend[0].occupancy == 0


def test_monthly_trend_occupancy_for_full_house(tmp_path) -> None:
    bookings = [
        _booking(f"b{index}", room, "2024-02-01", "2024-03-01", BookingStatus.CHECKED_OUT)
        for index, room in enumerate(["1", "2", "3", "4", "5", "6", "7", "8"])
    ]
    trend = _build_service(tmp_path, bookings).monthly_trend("2024-02-10", months=1)
    assert [point.month for point in trend] == ["2024-02"]
    assert trend[0].occupancy == 53
