"""
Payroll Proxy Service

Routes payroll actions from the dashboard to the organization's connected
provider, refreshing the OAuth token first when it is about to expire.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional
import logging

import httpx
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utc_now
from .crypto import TokenCipher
from .models import ConnectionStatus, PayrollConnection, PayrollRun, PayrollRunStatus
from .providers import (
    PayrollProvider,
    ProviderResponse,
    TokenRefreshError,
    UnknownProviderError,
    get_provider,
    get_provider_class,
)

logger = logging.getLogger(__name__)


class PayrollProxyError(Exception):
    """An error with the HTTP status and body to return to the caller."""

    def __init__(self, status_code: int, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


@dataclass
class ProxyResult:
    status_code: int
    body: Dict[str, Any]


def _require(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if not value:
        raise PayrollProxyError(400, f"Missing {key}")
    return value


ActionHandler = Callable[[PayrollProvider, Dict[str, Any]], Awaitable[ProviderResponse]]

ACTIONS: Dict[str, ActionHandler] = {
    "getCompany": lambda provider, data: provider.get_company(),
    "getEmployees": lambda provider, data: provider.get_employees(),
    "getPayrolls": lambda provider, data: provider.get_payrolls(data.get("startDate"), data.get("endDate")),
    "getPayroll": lambda provider, data: provider.get_payroll(_require(data, "payrollId")),
    "createPayroll": lambda provider, data: provider.create_payroll(_require(data, "payroll")),
    "submitPayroll": lambda provider, data: provider.submit_payroll(_require(data, "payrollId")),
    "getPaySchedules": lambda provider, data: provider.get_pay_schedules(),
}


def _parse_date(value: Any) -> Optional[date]:
    """Provider date as a date; unreadable values are stored as None."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning(f"Ignoring unparseable provider date: {value!r}")
        return None


class PayrollProxy:
    """
    Executes one payroll action for an organization.

    Handles:
    - Connection lookup and status checks
    - Token refresh inside the provider's expiry buffer
    - Local payroll run bookkeeping for create/submit
    """

    def __init__(self, db: AsyncSession, cipher: TokenCipher, client: httpx.AsyncClient):
        self.db = db
        self.cipher = cipher
        self.client = client

    async def get_connection(self, organization_id: str) -> Optional[PayrollConnection]:
        result = await self.db.execute(
            select(PayrollConnection).where(PayrollConnection.organization_id == organization_id)
        )
        return result.scalar_one_or_none()

    async def ensure_fresh_token(self, connection: PayrollConnection, now: Optional[datetime] = None) -> None:
        """Refresh the access token if it expires within the provider's buffer."""
        provider_class = get_provider_class(connection.provider)
        now = now or utc_now()

        expires_at = connection.token_expires_at
        if expires_at is not None and expires_at - now >= provider_class.refresh_buffer:
            return

        logger.info(f"Refreshing {provider_class.display_name} token for organization {connection.organization_id}")
        try:
            if not connection.refresh_token_encrypted:
                raise TokenRefreshError("No refresh token available")
            refresh_token = self.cipher.decrypt(connection.refresh_token_encrypted)
            tokens = await provider_class.refresh_tokens(self.client, refresh_token)
        except Exception as e:
            logger.error(f"Token refresh failed for organization {connection.organization_id}: {e}")
            connection.extra_data = {**(connection.extra_data or {}), "error": "Token refresh failed"}
            await self.db.commit()
            raise PayrollProxyError(401, "Failed to refresh token", {"details": str(e)}) from e

        connection.access_token_encrypted = self.cipher.encrypt(tokens.access_token)
        if tokens.refresh_token:
            connection.refresh_token_encrypted = self.cipher.encrypt(tokens.refresh_token)
        connection.token_expires_at = utc_now() + timedelta(seconds=tokens.expires_in)
        extra = dict(connection.extra_data or {})
        extra.pop("error", None)
        connection.extra_data = extra
        await self.db.commit()

    def _record_created_payroll(self, provider: PayrollProvider, organization_id: str, data: Any) -> None:
        record = provider.created_payroll_record(data)
        if record is None:
            return
        self.db.add(PayrollRun(
            organization_id=organization_id,
            provider=provider.name,
            external_payroll_id=record["external_payroll_id"],
            pay_period_start=_parse_date(record.get("pay_period_start")),
            pay_period_end=_parse_date(record.get("pay_period_end")),
            check_date=_parse_date(record.get("check_date")),
            status=PayrollRunStatus.DRAFT.value,
        ))

    async def _mark_submitted(self, organization_id: str, payroll_id: str) -> None:
        await self.db.execute(
            update(PayrollRun)
            .where(PayrollRun.organization_id == organization_id)
            .where(PayrollRun.external_payroll_id == str(payroll_id))
            .values(status=PayrollRunStatus.SUBMITTED.value, submitted_at=utc_now())
        )

    async def execute(
        self, organization_id: str, action: str, data: Optional[Dict[str, Any]] = None
    ) -> ProxyResult:
        """Run an action against the organization's payroll provider."""
        data = data or {}

        connection = await self.get_connection(organization_id)
        if connection is None:
            raise PayrollProxyError(404, "No payroll provider connected")

        if connection.connection_status != ConnectionStatus.CONNECTED.value:
            raise PayrollProxyError(
                400, "Payroll provider not connected", {"status": connection.connection_status}
            )

        try:
            get_provider_class(connection.provider)
        except UnknownProviderError:
            raise PayrollProxyError(400, "Unknown provider") from None

        await self.ensure_fresh_token(connection)

        access_token = self.cipher.decrypt(connection.access_token_encrypted)
        provider = get_provider(connection, access_token, self.client)

        handler = ACTIONS.get(action)
        if handler is None:
            raise PayrollProxyError(400, f"Unknown {provider.display_name} action: {action}")

        response = await handler(provider, data)

        if response.ok and action == "createPayroll":
            self._record_created_payroll(provider, organization_id, response.data)
        elif response.ok and action == "submitPayroll":
            await self._mark_submitted(organization_id, data["payrollId"])

        connection.last_synced_at = utc_now()
        await self.db.commit()

        return ProxyResult(
            status_code=200 if response.ok else response.status_code,
            body={"success": response.ok, "data": response.data},
        )
