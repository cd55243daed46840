"""
Anomaly Models

Transient detection results and the persisted anomaly record.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Column, String, DateTime, Float, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.database import Base
from app.models.base import generate_id


class AnomalyType(str, Enum):
    """Metrics watched by the anomaly checkers."""
    REVENUE_DROP = "revenue_drop"
    CANCELLATION_SPIKE = "cancellation_spike"
    NO_SHOW_SURGE = "no_show_surge"
    BOOKING_DROP = "booking_drop"


class AnomalySeverity(str, Enum):
    """How far a deviation exceeds its trigger threshold."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class AnomalyResult:
    """
    A single anomaly emitted by a checker.

    Built per invocation and never retained beyond the request; the
    persisted form is DetectedAnomaly.
    """
    type: AnomalyType
    severity: AnomalySeverity
    metric_value: float
    expected_value: float
    deviation_percent: int
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_critical(self) -> bool:
        return self.severity == AnomalySeverity.CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys the dashboard reads."""
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "metricValue": self.metric_value,
            "expectedValue": self.expected_value,
            "deviationPercent": self.deviation_percent,
            "context": self.context,
        }


class DetectedAnomaly(Base):
    """
    Persisted anomaly.

    Written once per detected anomaly per run and never updated. There is
    no uniqueness constraint: running detection twice on the same day
    stores two rows.
    """
    __tablename__ = "detected_anomalies"

    id = Column(String, primary_key=True, default=lambda: generate_id("anom"))
    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    location_id = Column(String, nullable=True)

    anomaly_type = Column(String, nullable=False)
    severity = Column(String, nullable=False)
    metric_value = Column(Float, nullable=False)
    expected_value = Column(Float, nullable=False)
    deviation_percent = Column(Integer, nullable=False)
    context = Column(JSONB, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_detected_anomalies_org_created", "organization_id", "created_at"),
    )

    @classmethod
    def from_result(
        cls,
        result: AnomalyResult,
        organization_id: str,
        location_id: Optional[str] = None,
    ) -> "DetectedAnomaly":
        return cls(
            organization_id=organization_id,
            location_id=location_id or None,
            anomaly_type=result.type.value,
            severity=result.severity.value,
            metric_value=result.metric_value,
            expected_value=result.expected_value,
            deviation_percent=result.deviation_percent,
            context=result.context,
        )
