"""Payroll providers and the factory that picks one per connection."""
from typing import Dict, Type

import httpx

from app.payroll.models import PayrollConnection
from .base import PayrollProvider, ProviderResponse, TokenRefreshError, TokenSet
from .gusto import GustoProvider
from .quickbooks import QuickBooksProvider


PROVIDERS: Dict[str, Type[PayrollProvider]] = {
    GustoProvider.name: GustoProvider,
    QuickBooksProvider.name: QuickBooksProvider,
}


class UnknownProviderError(Exception):
    """Raised for a connection whose provider has no implementation."""


def get_provider_class(provider_name: str) -> Type[PayrollProvider]:
    try:
        return PROVIDERS[provider_name]
    except KeyError:
        raise UnknownProviderError(provider_name) from None


def get_provider(
    connection: PayrollConnection, access_token: str, client: httpx.AsyncClient
) -> PayrollProvider:
    """Build the provider implementation for a stored connection."""
    return get_provider_class(connection.provider)(connection, access_token, client)


__all__ = [
    "PayrollProvider",
    "ProviderResponse",
    "TokenRefreshError",
    "TokenSet",
    "GustoProvider",
    "QuickBooksProvider",
    "PROVIDERS",
    "UnknownProviderError",
    "get_provider_class",
    "get_provider",
]
