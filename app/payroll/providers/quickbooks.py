"""QuickBooks Payroll provider.

Payroll data comes from the payroll API; company info only exists on the
accounting API.
"""
from datetime import timedelta
from typing import Any, Dict, Optional
import base64

import httpx

from app.config import settings
from .base import PayrollProvider, ProviderResponse, TokenRefreshError, TokenSet

QB_PAYROLL_API_BASE = "https://payroll.api.intuit.com/v1"
QB_SANDBOX_API_BASE = "https://sandbox-payroll.api.intuit.com/v1"
QB_ACCOUNTING_API_BASE = "https://quickbooks.api.intuit.com/v3"
QB_TOKEN_URL = "https://oauth.platform.intuit.com/oauth2/v1/tokens/bearer"


def get_basic_auth_header() -> str:
    """Generate Basic Auth header for token requests."""
    credentials = f"{settings.QUICKBOOKS_CLIENT_ID}:{settings.QUICKBOOKS_CLIENT_SECRET}"
    encoded = base64.b64encode(credentials.encode()).decode()
    return f"Basic {encoded}"


class QuickBooksProvider(PayrollProvider):
    """QuickBooks Payroll API. Employers are addressed by realm id."""

    name = "quickbooks"
    display_name = "QuickBooks"
    # Access tokens live for an hour
    refresh_buffer = timedelta(minutes=10)

    def __init__(self, connection, access_token: str, client: httpx.AsyncClient):
        super().__init__(connection, access_token, client)
        sandbox = (connection.extra_data or {}).get("sandbox") is True
        self.base_url = QB_SANDBOX_API_BASE if sandbox else QB_PAYROLL_API_BASE

    def _url(self, path: str = "") -> str:
        return f"{self.base_url}/employers/{self.company_id}{path}"

    @classmethod
    async def refresh_tokens(cls, client: httpx.AsyncClient, refresh_token: str) -> TokenSet:
        response = await client.post(
            QB_TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
            headers={
                "Authorization": get_basic_auth_header(),
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
        )
        if response.status_code != 200:
            raise TokenRefreshError(f"QuickBooks token refresh failed: {response.status_code} - {response.text}")
        # QuickBooks rotates refresh tokens; the new one must be stored
        return TokenSet.from_response(response.json())

    async def get_company(self) -> ProviderResponse:
        realm_id = self.company_id
        return await self._request("GET", f"{QB_ACCOUNTING_API_BASE}/company/{realm_id}/companyinfo/{realm_id}")

    async def get_employees(self) -> ProviderResponse:
        return await self._request("GET", self._url("/employees"))

    async def get_payrolls(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> ProviderResponse:
        # The payroll-runs listing takes no date range
        return await self._request("GET", self._url("/payroll-runs"))

    async def get_payroll(self, payroll_id: str) -> ProviderResponse:
        return await self._request("GET", self._url(f"/payroll-runs/{payroll_id}"))

    async def create_payroll(self, payroll: Dict[str, Any]) -> ProviderResponse:
        return await self._request("POST", self._url("/payroll-runs"), json=payroll)

    async def submit_payroll(self, payroll_id: str) -> ProviderResponse:
        return await self._request("POST", self._url(f"/payroll-runs/{payroll_id}/actions/approve"))

    async def get_pay_schedules(self) -> ProviderResponse:
        return await self._request("GET", self._url("/pay-schedules"))

    def created_payroll_record(self, data: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(data, dict) or not data.get("id"):
            return None
        pay_period = data.get("payPeriod") or {}
        return {
            "external_payroll_id": str(data["id"]),
            "pay_period_start": pay_period.get("startDate"),
            "pay_period_end": pay_period.get("endDate"),
            "check_date": data.get("checkDate"),
        }
