"""
Anomaly Scheduler

Background job that runs anomaly detection for every organization once a
day, after the POS sync has landed the day's sales.

Uses APScheduler for job scheduling.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select

from app.config import settings
from app.database import async_session_maker
from app.models.base import utc_now
from app.models.organization import Organization
from .engine import AnomalyDetector

logger = logging.getLogger(__name__)


class AnomalyScheduler:
    """
    Manages scheduled anomaly runs.

    A failure for one organization is logged and recorded in the summary;
    the remaining organizations still run.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or async_session_maker
        self._running = False
        self._last_run: Optional[datetime] = None

    async def run_daily_detection(self, today: Optional[date] = None) -> dict:
        """
        Run organization-wide anomaly detection for all organizations.

        Returns summary of anomalies found and alerts sent.
        """
        logger.info("Starting daily anomaly detection run")
        self._running = True
        self._last_run = utc_now()

        summary = {
            "run_type": "daily",
            "started_at": self._last_run.isoformat(),
            "organizations_processed": 0,
            "anomalies_detected": 0,
            "alerts_sent": 0,
            "errors": [],
        }

        try:
            async with self._session_factory() as db:
                result = await db.execute(select(Organization.id))
                organization_ids = [row[0] for row in result.fetchall()]

                for organization_id in organization_ids:
                    try:
                        run = await AnomalyDetector(db, organization_id).detect(today)
                        summary["organizations_processed"] += 1
                        summary["anomalies_detected"] += run.detected
                        summary["alerts_sent"] += run.alerts_sent
                    except Exception as e:
                        logger.error(f"Anomaly detection failed for organization {organization_id}: {e}")
                        summary["errors"].append({
                            "organization_id": organization_id,
                            "error": str(e),
                        })
                        await db.rollback()
        except Exception as e:
            logger.error(f"Daily anomaly detection run failed: {e}")
            summary["errors"].append({"error": str(e)})
        finally:
            self._running = False

        summary["completed_at"] = utc_now().isoformat()
        logger.info(
            f"Daily anomaly detection completed: {summary['organizations_processed']} organizations,"
            f" {summary['anomalies_detected']} anomalies, {summary['alerts_sent']} alerts"
        )
        return summary

    def get_status(self) -> dict:
        """Get scheduler status including the last run time."""
        return {
            "running": self._running,
            "last_run": self._last_run.isoformat() if self._last_run else None,
        }


# Singleton instance for use across the application
anomaly_scheduler = AnomalyScheduler()


def setup_apscheduler(scheduler, hour: Optional[int] = None):
    """
    Configure APScheduler with the daily anomaly job.

    Usage:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        scheduler = AsyncIOScheduler()
        setup_apscheduler(scheduler)
        scheduler.start()

    Args:
        scheduler: APScheduler instance (AsyncIOScheduler)
        hour: UTC hour to run at, defaults to ANOMALY_SCHEDULE_HOUR
    """
    scheduler.add_job(
        anomaly_scheduler.run_daily_detection,
        'cron',
        hour=settings.ANOMALY_SCHEDULE_HOUR if hour is None else hour,
        minute=0,
        id='daily_anomaly_detection',
        name='Daily Anomaly Detection',
        replace_existing=True,
    )

    logger.info("Anomaly detection job configured")
