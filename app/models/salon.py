"""Salon operations models read by analytics: daily sales and appointments."""
from enum import Enum

from sqlalchemy import Column, String, Date, DateTime, Numeric, ForeignKey, Index
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment."""
    BOOKED = "booked"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class DailySalesSummary(Base):
    """One row per location per day, synced from the POS."""

    __tablename__ = "daily_sales_summaries"

    id = Column(String, primary_key=True, default=lambda: generate_id("sales"))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    location_id = Column(String, nullable=True)
    sales_date = Column(Date, nullable=False)
    total_revenue = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_daily_sales_org_date", "organization_id", "sales_date"),
    )


class Appointment(Base):
    """Client appointment synced from the booking system."""

    __tablename__ = "appointments"

    id = Column(String, primary_key=True, default=lambda: generate_id("appt"))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    location_id = Column(String, nullable=True)
    appointment_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.BOOKED.value)

    # When the booking was made (not when it takes place)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_appointments_org_date", "organization_id", "appointment_date"),
        Index("ix_appointments_org_created", "organization_id", "created_at"),
    )
