"""
Anomaly Alerts

Writes a platform notification for every critical anomaly, provided the
organization has someone to read it.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import NotificationType, PlatformNotification
from app.models.organization import ALERT_RECIPIENT_ROLES, UserRole
from .checks import round_half_up
from .models import AnomalyResult, AnomalyType

logger = logging.getLogger(__name__)


ANOMALY_TITLES = {
    AnomalyType.REVENUE_DROP: "⚠️ Revenue Drop Detected",
    AnomalyType.CANCELLATION_SPIKE: "🚨 Cancellation Spike",
    AnomalyType.NO_SHOW_SURGE: "⚠️ No-Show Surge",
    AnomalyType.BOOKING_DROP: "📉 Booking Drop",
}
DEFAULT_TITLE = "⚠️ Anomaly Detected"


def _format_number(value: float) -> str:
    """Render whole numbers without a trailing .0."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def get_anomaly_title(anomaly: AnomalyResult) -> str:
    return ANOMALY_TITLES.get(anomaly.type, DEFAULT_TITLE)


def get_anomaly_message(anomaly: AnomalyResult) -> str:
    """One-line summary shown under the title."""
    metric = _format_number(anomaly.metric_value)
    expected = _format_number(anomaly.expected_value)
    drop = abs(anomaly.deviation_percent)

    if anomaly.type == AnomalyType.REVENUE_DROP:
        return f"Today's revenue is {drop}% below expected (${metric} vs ${expected})"
    if anomaly.type == AnomalyType.CANCELLATION_SPIKE:
        return (
            f"Cancellation rate is {round_half_up(anomaly.metric_value)}% today "
            f"(normal: {round_half_up(anomaly.expected_value)}%)"
        )
    if anomaly.type == AnomalyType.NO_SHOW_SURGE:
        return f"{metric} no-shows today - above normal threshold"
    if anomaly.type == AnomalyType.BOOKING_DROP:
        return f"New bookings are {drop}% below average ({metric} vs {expected})"
    return f"Unusual activity detected: {anomaly.deviation_percent}% deviation"


class AlertDispatcher:
    """
    Notifies organization admins about critical anomalies.

    One notification row per anomaly; the admin feed fans it out, so admins
    are only resolved to decide whether anyone is listening.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_admin_user_ids(self, organization_id: str) -> List[str]:
        result = await self.db.execute(
            select(UserRole.user_id)
            .where(UserRole.organization_id == organization_id)
            .where(UserRole.role.in_(ALERT_RECIPIENT_ROLES))
            .distinct()
        )
        return list(result.scalars().all())

    async def dispatch(self, organization_id: str, anomalies: List[AnomalyResult]) -> int:
        """
        Write notifications for the critical subset of anomalies.

        Returns the number of notifications written. Having no admins is
        not an error; nothing is written.
        """
        critical = [a for a in anomalies if a.is_critical]
        if not critical:
            return 0

        admins = await self.get_admin_user_ids(organization_id)
        if not admins:
            logger.info(f"No admins for organization {organization_id}; skipping {len(critical)} anomaly alerts")
            return 0

        sent = 0
        for anomaly in critical:
            notification = PlatformNotification(
                organization_id=organization_id,
                type=NotificationType.ANOMALY_DETECTED.value,
                title=get_anomaly_title(anomaly),
                message=get_anomaly_message(anomaly),
                severity=anomaly.severity.value,
                extra_data={"anomaly": anomaly.to_dict()},
            )
            self.db.add(notification)
            try:
                await self.db.commit()
                sent += 1
            except SQLAlchemyError as e:
                logger.error(f"Failed to write {anomaly.type.value} alert for organization {organization_id}: {e}")
                await self.db.rollback()

        return sent
