"""Anomaly detection API routes.

Endpoints:
- POST /detect-anomalies - Run all anomaly checks for an organization
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.anomalies import schemas
from app.anomalies.engine import AnomalyDetector

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/detect-anomalies",
    response_model=schemas.DetectAnomaliesResponse,
    responses={400: {"model": schemas.ErrorResponse}, 500: {"model": schemas.ErrorResponse}},
)
async def detect_anomalies(
    request: Optional[schemas.DetectAnomaliesRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """
    Check revenue, cancellations, no-shows and bookings for anomalies.

    Detected anomalies are stored on every call, including repeated calls
    on the same day. Critical ones are posted to the admin feed.
    """
    if request is None or not request.organization_id:
        return JSONResponse(status_code=400, content={"error": "organizationId is required"})

    try:
        detector = AnomalyDetector(db, request.organization_id, request.location_id)
        run = await detector.detect()
    except Exception as e:
        logger.exception(f"Anomaly detection error for organization {request.organization_id}")
        return JSONResponse(status_code=500, content={"error": str(e) or "Unknown error"})

    return run.to_response()
