"""
Consolidated models package for the shared tenant and salon tables.

IMPORTANT: Explicit imports only - no wildcards to prevent circular imports.
Feature models live beside their feature (app.anomalies.models,
app.payroll.models) and import generate_id from app.models.base.
"""

# Base utilities
from app.models.base import generate_id, utc_now

# Tenant models
from app.models.organization import Organization, UserRole, AppRole, ALERT_RECIPIENT_ROLES

# Salon read models
from app.models.salon import DailySalesSummary, Appointment, AppointmentStatus

# Notification models
from app.models.notification import NotificationType, PlatformNotification

__all__ = [
    "generate_id",
    "utc_now",
    "Organization",
    "UserRole",
    "AppRole",
    "ALERT_RECIPIENT_ROLES",
    "DailySalesSummary",
    "Appointment",
    "AppointmentStatus",
    "NotificationType",
    "PlatformNotification",
]
