"""
Anomaly Detection Engine

Runs every checker for one organization (optionally one location), stores
what they find and alerts admins about the critical ones.

Checkers run one after another on the request's session. A checker that
raises aborts the whole run; there is no per-check isolation and no
partial result.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utc_now
from .alerts import AlertDispatcher
from .checks import Checker, DEFAULT_CHECKERS
from .models import AnomalyResult, DetectedAnomaly

logger = logging.getLogger(__name__)


@dataclass
class DetectionRun:
    """Outcome of one detection invocation."""
    organization_id: str
    location_id: Optional[str]
    anomalies: List[AnomalyResult] = field(default_factory=list)
    persisted: bool = False
    alerts_sent: int = 0
    checked_at: datetime = field(default_factory=utc_now)

    @property
    def detected(self) -> int:
        return len(self.anomalies)

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "detected": self.detected,
            "anomalies": [a.to_dict() for a in self.anomalies],
            "checkedAt": self.checked_at.isoformat(),
        }


class AnomalyDetector:
    """
    Aggregates the anomaly checkers for a tenant.

    Called:
    - From the detect-anomalies endpoint
    - By the daily scheduler for every organization
    """

    def __init__(
        self,
        db: AsyncSession,
        organization_id: str,
        location_id: Optional[str] = None,
        checkers: Optional[Sequence[Checker]] = None,
        dispatcher: Optional[AlertDispatcher] = None,
    ):
        self.db = db
        self.organization_id = organization_id
        self.location_id = location_id or None
        self.checkers = list(checkers) if checkers is not None else list(DEFAULT_CHECKERS)
        self.dispatcher = dispatcher or AlertDispatcher(db)

    async def run_checks(self, today: date) -> List[AnomalyResult]:
        """Invoke each checker in turn and keep the ones that fired."""
        anomalies = []
        for checker in self.checkers:
            result = await checker(self.db, self.organization_id, self.location_id, today)
            if result is not None:
                anomalies.append(result)
        return anomalies

    async def persist(self, anomalies: List[AnomalyResult]) -> bool:
        """
        Insert the batch of anomalies.

        A failed write is logged and reported as False; it is not raised.
        """
        if not anomalies:
            return False

        self.db.add_all([
            DetectedAnomaly.from_result(a, self.organization_id, self.location_id)
            for a in anomalies
        ])
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to store {len(anomalies)} anomalies for organization {self.organization_id}: {e}")
            await self.db.rollback()
            return False
        return True

    async def detect(self, today: Optional[date] = None) -> DetectionRun:
        """Run all checks, persist the findings and alert on critical ones."""
        today = today or utc_now().date()
        run = DetectionRun(organization_id=self.organization_id, location_id=self.location_id)

        run.anomalies = await self.run_checks(today)

        if run.anomalies:
            run.persisted = await self.persist(run.anomalies)
            run.alerts_sent = await self.dispatcher.dispatch(self.organization_id, run.anomalies)
            logger.info(
                f"Detected {run.detected} anomalies for organization {self.organization_id}"
                f" ({run.alerts_sent} alerts)"
            )

        run.checked_at = utc_now()
        return run
