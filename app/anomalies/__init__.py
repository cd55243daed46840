# Anomaly Detection Module
# Flags days when revenue, cancellations, no-shows or bookings move far
# from their usual level, and alerts admins about the critical ones.
#
# Components:
# - checks.py: the four anomaly checkers
# - engine.py: AnomalyDetector (runs checkers, persists results)
# - alerts.py: AlertDispatcher for critical anomalies
# - rules.py: checker thresholds
# - scheduler.py: daily APScheduler job
# - models.py: AnomalyResult, DetectedAnomaly

from .models import (
    AnomalyType,
    AnomalySeverity,
    AnomalyResult,
    DetectedAnomaly,
)
from .rules import ANOMALY_RULES, get_thresholds
from .checks import (
    check_revenue_anomaly,
    check_cancellation_anomaly,
    check_no_show_anomaly,
    check_booking_anomaly,
    DEFAULT_CHECKERS,
)
from .alerts import AlertDispatcher, get_anomaly_title, get_anomaly_message
from .engine import AnomalyDetector, DetectionRun

__all__ = [
    # Models
    "AnomalyType",
    "AnomalySeverity",
    "AnomalyResult",
    "DetectedAnomaly",
    # Rules
    "ANOMALY_RULES",
    "get_thresholds",
    # Checkers
    "check_revenue_anomaly",
    "check_cancellation_anomaly",
    "check_no_show_anomaly",
    "check_booking_anomaly",
    "DEFAULT_CHECKERS",
    # Alerts
    "AlertDispatcher",
    "get_anomaly_title",
    "get_anomaly_message",
    # Engine
    "AnomalyDetector",
    "DetectionRun",
]
