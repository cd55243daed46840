"""
Notification Models

Platform notifications shown in the shared admin feed.
"""

from enum import Enum

from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class NotificationType(str, Enum):
    """Types of platform notifications."""
    ANOMALY_DETECTED = "anomaly_detected"


class PlatformNotification(Base):
    """
    A notification in the organization's admin feed.

    One row reaches every admin of the organization; there is no
    per-recipient row.
    """
    __tablename__ = "platform_notifications"

    id = Column(String, primary_key=True, default=lambda: generate_id("notif"))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True)

    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    severity = Column(String, nullable=False)

    # "metadata" is reserved on declarative classes
    extra_data = Column("metadata", JSONB, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
