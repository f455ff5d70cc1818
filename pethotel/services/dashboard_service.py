"""Front-desk statistics: occupancy, today's movements and monthly revenue."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from pethotel.domain.constraints import (
    DateLike,
    iter_days,
    month_key,
    parse_date,
    parse_month,
    previous_month_key,
)
from pethotel.domain.models import Booking, BookingStatus
from pethotel.domain.rooms import all_room_names
from pethotel.repository.hotel_repository import HotelRepository
from pethotel.utils.config import Settings, get_settings


@dataclass(frozen=True)
class DashboardSummary:
    day: date
    occupied: int
    check_ins_today: int
    check_outs_today: int
    monthly_revenue: float
    previous_month_revenue: float
    revenue_growth: float
    occupancy_rate: int


@dataclass(frozen=True)
class MonthlyTrendPoint:
    month: str
    revenue: float
    occupancy: int


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def revenue_for_month(bookings: Iterable[Booking], month: str) -> float:
    """Non-cancelled bookings checking in during ``month`` (``YYYY-MM``)."""
    start, end = parse_month(month)
    return sum(
        booking.total_price
        for booking in bookings
        if booking.status is not BookingStatus.CANCELLED and start <= booking.check_in < end
    )


def revenue_growth(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def occupancy_rate(occupied: int, room_count: Optional[int] = None) -> int:
    total = room_count or len(all_room_names())
    return min(_round_half_up(occupied / total * 100), 100)


class DashboardService:
    def __init__(
        self,
        repository: Optional[HotelRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or HotelRepository(self._settings)

    def summary(self, today: Optional[DateLike] = None) -> DashboardSummary:
        day = parse_date(today) if today is not None else date.today()
        bookings = self._repository.list_bookings()

        occupied = sum(1 for booking in bookings if booking.status is BookingStatus.CHECKED_IN)
        current = revenue_for_month(bookings, month_key(day))
        previous = revenue_for_month(bookings, previous_month_key(day))
        return DashboardSummary(
            day=day,
            occupied=occupied,
            check_ins_today=sum(1 for booking in bookings if booking.check_in == day),
            check_outs_today=sum(1 for booking in bookings if booking.check_out == day),
            monthly_revenue=current,
            previous_month_revenue=previous,
            revenue_growth=revenue_growth(current, previous),
            occupancy_rate=occupancy_rate(occupied),
        )

    def monthly_trend(self, today: Optional[DateLike] = None, months: int = 6) -> list[MonthlyTrendPoint]:
        """Revenue and booked room-night occupancy for the last ``months`` months."""
        day = parse_date(today) if today is not None else date.today()
        keys = [month_key(day)]
        while len(keys) < max(months, 1):
            first, _ = parse_month(keys[-1])
            keys.append(previous_month_key(first))
        keys.reverse()

        bookings = [
            booking
            for booking in self._repository.list_bookings()
            if booking.is_active or booking.status is BookingStatus.CHECKED_OUT
        ]
        points: list[MonthlyTrendPoint] = []
        for key in keys:
            start, end = parse_month(key)
            nights = sum(
                1
                for booking in bookings
                if booking.has_room
                for _ in iter_days(max(start, booking.check_in), min(end, booking.check_out))
            )
            capacity = len(all_room_names()) * (end - start).days
            points.append(
                MonthlyTrendPoint(
                    month=key,
                    revenue=revenue_for_month(bookings, key),
                    occupancy=min(_round_half_up(nights / capacity * 100), 100),
                )
            )
        return points
