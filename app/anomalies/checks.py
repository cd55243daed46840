"""
Anomaly Checkers

Four independent checks, each comparing a metric for the current day with a
historical baseline. A checker returns an AnomalyResult only when its
threshold is crossed; None means "no anomaly", never "zero deviation".

Every checker takes the same arguments so the detector can run them in turn:
    (db, organization_id, location_id, today)
A missing location_id means the organization-wide aggregate.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Awaitable, Callable, Optional, Tuple
import logging
import math

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.salon import Appointment, AppointmentStatus, DailySalesSummary
from .models import AnomalyResult, AnomalySeverity, AnomalyType
from .rules import get_thresholds

logger = logging.getLogger(__name__)

Checker = Callable[[AsyncSession, str, Optional[str], date], Awaitable[Optional[AnomalyResult]]]

DAY_ABBREVIATIONS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
DAY_PLURALS = ["Mondays", "Tuesdays", "Wednesdays", "Thursdays", "Fridays", "Saturdays", "Sundays"]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, as the dashboard does."""
    return int(math.floor(value + 0.5))


def _scoped(query, model, organization_id: str, location_id: Optional[str]):
    """Restrict a query to the organization and, if given, one location."""
    query = query.where(model.organization_id == organization_id)
    if location_id:
        query = query.where(model.location_id == location_id)
    return query


def _day_window(day: date) -> Tuple[datetime, datetime]:
    """UTC bounds [start, end) of a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


# =============================================================================
# Revenue drop
# =============================================================================

async def _daily_revenue(
    db: AsyncSession, organization_id: str, location_id: Optional[str], day: date
) -> Optional[float]:
    """Total revenue for a day, or None when no summary row exists."""
    query = _scoped(
        select(
            func.count(DailySalesSummary.id),
            func.coalesce(func.sum(DailySalesSummary.total_revenue), 0),
        ),
        DailySalesSummary,
        organization_id,
        location_id,
    ).where(DailySalesSummary.sales_date == day)

    result = await db.execute(query)
    row_count, total = result.one()
    if not row_count:
        return None
    return float(total)


async def check_revenue_anomaly(
    db: AsyncSession, organization_id: str, location_id: Optional[str], today: date
) -> Optional[AnomalyResult]:
    """Flag revenue well below the same weekday last week."""
    thresholds = get_thresholds(AnomalyType.REVENUE_DROP)

    today_revenue = await _daily_revenue(db, organization_id, location_id, today)
    if today_revenue is None:
        logger.debug(f"No sales summary for {today} (org {organization_id}); skipping revenue check")
        return None

    comparison_date = today - timedelta(days=thresholds["comparison_days"])
    last_week_revenue = await _daily_revenue(db, organization_id, location_id, comparison_date) or 0.0

    if last_week_revenue == 0:
        return None

    deviation = (today_revenue - last_week_revenue) / last_week_revenue * 100

    if deviation >= thresholds["warning_deviation_percent"]:
        return None

    severity = (
        AnomalySeverity.CRITICAL
        if deviation < thresholds["critical_deviation_percent"]
        else AnomalySeverity.WARNING
    )
    return AnomalyResult(
        type=AnomalyType.REVENUE_DROP,
        severity=severity,
        metric_value=today_revenue,
        expected_value=last_week_revenue,
        deviation_percent=round_half_up(deviation),
        context={
            "comparison": "same_day_last_week",
            "todayDate": today.isoformat(),
            "comparisonDate": comparison_date.isoformat(),
        },
    )


# =============================================================================
# Cancellation spike
# =============================================================================

async def _cancellation_counts(db: AsyncSession, query) -> Tuple[int, int]:
    """(total, cancelled) appointment counts for a scoped query."""
    result = await db.execute(query)
    total, cancelled = result.one()
    return int(total or 0), int(cancelled or 0)


def _count_with_cancellations():
    return select(
        func.count(Appointment.id),
        func.count(Appointment.id).filter(Appointment.status == AppointmentStatus.CANCELLED.value),
    )


async def check_cancellation_anomaly(
    db: AsyncSession, organization_id: str, location_id: Optional[str], today: date
) -> Optional[AnomalyResult]:
    """Flag a cancellation rate far above the trailing average."""
    thresholds = get_thresholds(AnomalyType.CANCELLATION_SPIKE)

    total_today, cancelled_today = await _cancellation_counts(
        db,
        _scoped(_count_with_cancellations(), Appointment, organization_id, location_id)
        .where(Appointment.appointment_date == today),
    )
    if total_today == 0:
        return None

    cancellation_rate = cancelled_today / total_today * 100

    history_start = today - timedelta(days=thresholds["history_days"])
    history_total, history_cancelled = await _cancellation_counts(
        db,
        _scoped(_count_with_cancellations(), Appointment, organization_id, location_id)
        .where(Appointment.appointment_date >= history_start)
        .where(Appointment.appointment_date < today),
    )
    if history_total < thresholds["min_history_appointments"]:
        return None

    avg_rate = history_cancelled / history_total * 100
    if avg_rate == 0:
        return None

    if not (
        cancellation_rate > avg_rate * thresholds["warning_rate_multiple"]
        and cancelled_today >= thresholds["min_cancellations"]
    ):
        return None

    severity = (
        AnomalySeverity.CRITICAL
        if cancellation_rate > avg_rate * thresholds["critical_rate_multiple"]
        else AnomalySeverity.WARNING
    )
    return AnomalyResult(
        type=AnomalyType.CANCELLATION_SPIKE,
        severity=severity,
        metric_value=cancellation_rate,
        expected_value=avg_rate,
        deviation_percent=round_half_up((cancellation_rate - avg_rate) / avg_rate * 100),
        context={
            "cancelledToday": cancelled_today,
            "totalToday": total_today,
            "avgRate": round_half_up(avg_rate * 10) / 10,
        },
    )


# =============================================================================
# No-show surge
# =============================================================================

async def check_no_show_anomaly(
    db: AsyncSession, organization_id: str, location_id: Optional[str], today: date
) -> Optional[AnomalyResult]:
    """Flag an unusual number of no-shows today."""
    thresholds = get_thresholds(AnomalyType.NO_SHOW_SURGE)

    query = (
        _scoped(select(func.count(Appointment.id)), Appointment, organization_id, location_id)
        .where(Appointment.appointment_date == today)
        .where(Appointment.status == AppointmentStatus.NO_SHOW.value)
    )
    result = await db.execute(query)
    no_show_count = int(result.scalar_one() or 0)

    if no_show_count < thresholds["warning_count"]:
        return None

    expected = thresholds["expected_count"]
    severity = (
        AnomalySeverity.CRITICAL
        if no_show_count >= thresholds["critical_count"]
        else AnomalySeverity.WARNING
    )
    return AnomalyResult(
        type=AnomalyType.NO_SHOW_SURGE,
        severity=severity,
        metric_value=no_show_count,
        expected_value=expected,
        deviation_percent=round_half_up((no_show_count - expected) / expected * 100),
        context={
            "date": today.isoformat(),
            "threshold": thresholds["warning_count"],
        },
    )


# =============================================================================
# Booking drop
# =============================================================================

async def _bookings_created_on(
    db: AsyncSession, organization_id: str, location_id: Optional[str], day: date
) -> int:
    """Number of appointments created (booked) during a calendar day."""
    start, end = _day_window(day)
    query = (
        _scoped(select(func.count(Appointment.id)), Appointment, organization_id, location_id)
        .where(Appointment.created_at >= start)
        .where(Appointment.created_at < end)
    )
    result = await db.execute(query)
    return int(result.scalar_one() or 0)


async def check_booking_anomaly(
    db: AsyncSession, organization_id: str, location_id: Optional[str], today: date
) -> Optional[AnomalyResult]:
    """Flag far fewer new bookings than on the same weekday recently."""
    thresholds = get_thresholds(AnomalyType.BOOKING_DROP)
    weeks = thresholds["lookback_weeks"]

    today_count = await _bookings_created_on(db, organization_id, location_id, today)

    total = 0
    for i in range(1, weeks + 1):
        total += await _bookings_created_on(
            db, organization_id, location_id, today - relativedelta(weeks=i)
        )
    avg_daily = total / weeks

    if avg_daily == 0:
        return None
    if avg_daily < thresholds["min_baseline_per_day"]:
        return None

    deviation = (today_count - avg_daily) / avg_daily * 100
    if deviation >= thresholds["warning_deviation_percent"]:
        return None

    weekday = today.weekday()
    severity = (
        AnomalySeverity.CRITICAL
        if deviation < thresholds["critical_deviation_percent"]
        else AnomalySeverity.WARNING
    )
    return AnomalyResult(
        type=AnomalyType.BOOKING_DROP,
        severity=severity,
        metric_value=today_count,
        expected_value=round_half_up(avg_daily),
        deviation_percent=round_half_up(deviation),
        context={
            "dayOfWeek": DAY_ABBREVIATIONS[weekday],
            "comparedAgainst": f"{weeks} previous {DAY_PLURALS[weekday]}",
        },
    )


# Run order of the detector
DEFAULT_CHECKERS = [
    check_revenue_anomaly,
    check_cancellation_anomaly,
    check_no_show_anomaly,
    check_booking_anomaly,
]
