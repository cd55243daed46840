"""Pydantic schemas for the anomaly detection endpoint."""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List, Union
from datetime import datetime


class DetectAnomaliesRequest(BaseModel):
    """Detection request; organizationId is checked by the route."""
    model_config = {"populate_by_name": True}

    organization_id: Optional[str] = Field(default=None, alias="organizationId")
    location_id: Optional[str] = Field(default=None, alias="locationId")


class AnomalyResultSchema(BaseModel):
    """A detected anomaly as returned to the dashboard."""
    model_config = {"populate_by_name": True}

    type: str
    severity: str
    metric_value: Union[int, float] = Field(alias="metricValue")
    expected_value: Union[int, float] = Field(alias="expectedValue")
    deviation_percent: int = Field(alias="deviationPercent")
    context: Dict[str, Any] = {}


class DetectAnomaliesResponse(BaseModel):
    """Summary of a detection run."""
    model_config = {"populate_by_name": True}

    success: bool = True
    detected: int
    anomalies: List[AnomalyResultSchema] = []
    checked_at: datetime = Field(alias="checkedAt")


class ErrorResponse(BaseModel):
    error: str
