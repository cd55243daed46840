"""Gusto payroll provider."""
from datetime import timedelta
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from .base import PayrollProvider, ProviderResponse, TokenRefreshError, TokenSet

GUSTO_API_BASE = "https://api.gusto.com/v1"
GUSTO_TOKEN_URL = "https://api.gusto.com/oauth/token"


class GustoProvider(PayrollProvider):
    """Gusto v1 API. Companies are addressed by uuid."""

    name = "gusto"
    display_name = "Gusto"
    refresh_buffer = timedelta(minutes=30)

    def _url(self, path: str = "") -> str:
        return f"{GUSTO_API_BASE}/companies/{self.company_id}{path}"

    @classmethod
    async def refresh_tokens(cls, client: httpx.AsyncClient, refresh_token: str) -> TokenSet:
        response = await client.post(
            GUSTO_TOKEN_URL,
            data={
                "client_id": settings.GUSTO_CLIENT_ID,
                "client_secret": settings.GUSTO_CLIENT_SECRET,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if response.status_code != 200:
            raise TokenRefreshError(f"Gusto token refresh failed: {response.status_code} - {response.text}")
        return TokenSet.from_response(response.json())

    async def get_company(self) -> ProviderResponse:
        return await self._request("GET", self._url())

    async def get_employees(self) -> ProviderResponse:
        return await self._request("GET", self._url("/employees"))

    async def get_payrolls(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> ProviderResponse:
        params = None
        if start_date and end_date:
            params = {"start_date": start_date, "end_date": end_date}
        return await self._request("GET", self._url("/payrolls"), params=params)

    async def get_payroll(self, payroll_id: str) -> ProviderResponse:
        return await self._request("GET", self._url(f"/payrolls/{payroll_id}"))

    async def create_payroll(self, payroll: Dict[str, Any]) -> ProviderResponse:
        return await self._request("POST", self._url("/payrolls"), json=payroll)

    async def submit_payroll(self, payroll_id: str) -> ProviderResponse:
        return await self._request("PUT", self._url(f"/payrolls/{payroll_id}/submit"))

    async def get_pay_schedules(self) -> ProviderResponse:
        return await self._request("GET", self._url("/pay_schedules"))

    def created_payroll_record(self, data: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(data, dict) or not data.get("uuid"):
            return None
        pay_period = data.get("pay_period") or {}
        return {
            "external_payroll_id": data["uuid"],
            "pay_period_start": pay_period.get("start_date"),
            "pay_period_end": pay_period.get("end_date"),
            "check_date": data.get("check_date"),
        }
