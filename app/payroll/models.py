"""Database models for payroll provider integration."""
from enum import Enum

from sqlalchemy import Column, String, Date, DateTime, Text, ForeignKey, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class PayrollProviderName(str, Enum):
    """Supported payroll providers."""
    GUSTO = "gusto"
    QUICKBOOKS = "quickbooks"


class ConnectionStatus(str, Enum):
    PENDING = "pending"
    CONNECTED = "connected"
    ERROR = "error"
    DISCONNECTED = "disconnected"


class PayrollRunStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"


class PayrollConnection(Base):
    """Payroll connection - one per organization, tokens stored encrypted."""

    __tablename__ = "payroll_connections"

    id = Column(String, primary_key=True, default=lambda: generate_id("payconn"))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    provider = Column(String, nullable=False)  # "gusto" | "quickbooks"
    connection_status = Column(String, nullable=False, default=ConnectionStatus.PENDING.value)

    # Gusto company uuid or QuickBooks realm id
    external_company_id = Column(String, nullable=True)

    # OAuth tokens (AES-GCM, base64)
    access_token_encrypted = Column(Text, nullable=True)
    refresh_token_encrypted = Column(Text, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)

    connected_by = Column(String, nullable=True)
    connected_at = Column(DateTime(timezone=True), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    # e.g. {"sandbox": true, "error": "Token refresh failed"}
    extra_data = Column("metadata", JSONB, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class PayrollRun(Base):
    """Local record of a payroll run created through a provider."""

    __tablename__ = "payroll_runs"

    id = Column(String, primary_key=True, default=lambda: generate_id("payrun"))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    provider = Column(String, nullable=False)
    external_payroll_id = Column(String, nullable=False)

    pay_period_start = Column(Date, nullable=True)
    pay_period_end = Column(Date, nullable=True)
    check_date = Column(Date, nullable=True)

    status = Column(String, nullable=False, default=PayrollRunStatus.DRAFT.value)
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_payroll_runs_org_external", "organization_id", "external_payroll_id"),
    )
