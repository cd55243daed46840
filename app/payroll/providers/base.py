"""
Payroll Provider Interface

Each provider wraps one payroll API behind the same set of operations so the
proxy never branches on provider name. Implementations are built by
app.payroll.providers.get_provider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional
import logging

import httpx

from app.payroll.models import PayrollConnection

logger = logging.getLogger(__name__)


class TokenRefreshError(Exception):
    """Raised when a provider rejects a refresh token."""


@dataclass
class TokenSet:
    """Tokens returned by a provider's OAuth token endpoint."""
    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "TokenSet":
        return cls(
            access_token=payload["access_token"],
            expires_in=int(payload.get("expires_in", 3600)),
            refresh_token=payload.get("refresh_token"),
        )


@dataclass
class ProviderResponse:
    """Status code and decoded body of a provider API call."""
    status_code: int
    data: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return {"raw": response.text}


class PayrollProvider(ABC):
    """Common operations of a payroll API."""

    name: str = ""
    display_name: str = ""

    # Refresh the access token when it expires within this window
    refresh_buffer: timedelta = timedelta(minutes=30)

    def __init__(self, connection: PayrollConnection, access_token: str, client: httpx.AsyncClient):
        self.connection = connection
        self.access_token = access_token
        self.client = client
        self.company_id = connection.external_company_id

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(self, method: str, url: str, **kwargs) -> ProviderResponse:
        response = await self.client.request(method, url, headers=self._get_headers(), **kwargs)
        if response.is_error:
            logger.warning(f"{self.display_name} API {method} {url} returned {response.status_code}")
        return ProviderResponse(status_code=response.status_code, data=_decode_body(response))

    # -------------------------------------------------------------------------
    # OAuth
    # -------------------------------------------------------------------------

    @classmethod
    @abstractmethod
    async def refresh_tokens(cls, client: httpx.AsyncClient, refresh_token: str) -> TokenSet:
        """Exchange a refresh token for a new access token."""

    # -------------------------------------------------------------------------
    # Payroll operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_company(self) -> ProviderResponse: ...

    @abstractmethod
    async def get_employees(self) -> ProviderResponse: ...

    @abstractmethod
    async def get_payrolls(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> ProviderResponse: ...

    @abstractmethod
    async def get_payroll(self, payroll_id: str) -> ProviderResponse: ...

    @abstractmethod
    async def create_payroll(self, payroll: Dict[str, Any]) -> ProviderResponse: ...

    @abstractmethod
    async def submit_payroll(self, payroll_id: str) -> ProviderResponse: ...

    @abstractmethod
    async def get_pay_schedules(self) -> ProviderResponse: ...

    @abstractmethod
    def created_payroll_record(self, data: Any) -> Optional[Dict[str, Any]]:
        """
        Fields for the local payroll run from a create response.

        Returns None when the response carries no payroll id.
        """
