"""Organization and role-membership models."""
from enum import Enum

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class AppRole(str, Enum):
    """Roles a user can hold inside an organization."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    STYLIST = "stylist"
    RECEPTIONIST = "receptionist"
    BOOTH_RENTER = "booth_renter"


# Roles that receive operational alerts
ALERT_RECIPIENT_ROLES = [
    AppRole.ADMIN.value,
    AppRole.MANAGER.value,
    AppRole.SUPER_ADMIN.value,
]


class Organization(Base):
    """Organization model - the top-level tenant."""

    __tablename__ = "organizations"

    id = Column(String, primary_key=True, default=lambda: generate_id("org"))
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    roles = relationship("UserRole", back_populates="organization", cascade="all, delete-orphan")


class UserRole(Base):
    """A user's role within an organization."""

    __tablename__ = "user_roles"

    id = Column(String, primary_key=True, default=lambda: generate_id("role"))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)  # Auth provider user id
    role = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    organization = relationship("Organization", back_populates="roles")

    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", "role", name="uq_user_roles_org_user_role"),
    )
