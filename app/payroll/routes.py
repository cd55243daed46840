"""Payroll proxy API routes.

Endpoints:
- POST /payroll-proxy - Run a payroll action against the connected provider
"""
import logging
from typing import AsyncGenerator, Optional

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.payroll import schemas
from app.payroll.crypto import TokenCipher, get_token_cipher
from app.payroll.service import PayrollProxy, PayrollProxyError

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Outbound client for provider calls, closed after the request."""
    async with httpx.AsyncClient(timeout=settings.PAYROLL_HTTP_TIMEOUT) as client:
        yield client


@router.post("/payroll-proxy", response_model=schemas.PayrollProxyResponse)
async def payroll_proxy(
    request: Optional[schemas.PayrollProxyRequest] = None,
    db: AsyncSession = Depends(get_db),
    cipher: TokenCipher = Depends(get_token_cipher),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Forward a payroll action (getCompany, getEmployees, getPayrolls,
    getPayroll, createPayroll, submitPayroll, getPaySchedules) to Gusto or
    QuickBooks, depending on the organization's connection.
    """
    if request is None or not request.organization_id or not request.action:
        return JSONResponse(status_code=400, content={"error": "Missing organizationId or action"})

    try:
        proxy = PayrollProxy(db, cipher, client)
        result = await proxy.execute(request.organization_id, request.action, request.data)
    except PayrollProxyError as e:
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    except Exception as e:
        logger.exception(f"Payroll proxy error for organization {request.organization_id}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(e) or "Unknown error"},
        )

    return JSONResponse(status_code=result.status_code, content=result.body)
