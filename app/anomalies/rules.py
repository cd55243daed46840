"""
Anomaly Rules

Thresholds for each anomaly checker. Percentages are signed deviations
from the baseline; a drop is negative.
"""

from .models import AnomalyType


ANOMALY_RULES = {
    AnomalyType.REVENUE_DROP: {
        "name": "Revenue Drop",
        "description": "Today's revenue against the same weekday last week",
        "thresholds": {
            "comparison_days": 7,
            "warning_deviation_percent": -25,
            "critical_deviation_percent": -50,
        },
    },

    AnomalyType.CANCELLATION_SPIKE: {
        "name": "Cancellation Spike",
        "description": "Today's cancellation rate against the trailing 30 days",
        "thresholds": {
            "history_days": 30,
            "min_history_appointments": 50,  # Smaller samples are noise
            "min_cancellations": 3,
            "warning_rate_multiple": 2,
            "critical_rate_multiple": 3,
        },
    },

    AnomalyType.NO_SHOW_SURGE: {
        "name": "No-Show Surge",
        "description": "No-shows today against a fixed typical count",
        "thresholds": {
            "expected_count": 1,
            "warning_count": 3,
            "critical_count": 5,
        },
    },

    AnomalyType.BOOKING_DROP: {
        "name": "Booking Drop",
        "description": "Bookings created today against the same weekday over four weeks",
        "thresholds": {
            "lookback_weeks": 4,
            "min_baseline_per_day": 5,
            "warning_deviation_percent": -40,
            "critical_deviation_percent": -60,
        },
    },
}


def get_thresholds(anomaly_type: AnomalyType) -> dict:
    """Thresholds for a checker."""
    return ANOMALY_RULES[anomaly_type]["thresholds"]
