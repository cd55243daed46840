# Payroll Module
# Proxies payroll actions to the organization's connected provider.
#
# Components:
# - providers/: PayrollProvider interface, Gusto and QuickBooks implementations
# - service.py: PayrollProxy (connection checks, token refresh, dispatch)
# - crypto.py: AES-GCM encryption for stored OAuth tokens
# - models.py: PayrollConnection, PayrollRun

from .models import (
    PayrollProviderName,
    ConnectionStatus,
    PayrollRunStatus,
    PayrollConnection,
    PayrollRun,
)
from .crypto import TokenCipher, TokenDecryptionError, get_token_cipher
from .service import PayrollProxy, PayrollProxyError, ProxyResult, ACTIONS

__all__ = [
    "PayrollProviderName",
    "ConnectionStatus",
    "PayrollRunStatus",
    "PayrollConnection",
    "PayrollRun",
    "TokenCipher",
    "TokenDecryptionError",
    "get_token_cipher",
    "PayrollProxy",
    "PayrollProxyError",
    "ProxyResult",
    "ACTIONS",
]
