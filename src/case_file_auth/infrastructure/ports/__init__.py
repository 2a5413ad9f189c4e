"""Port interfaces (Protocols) for infrastructure adapters."""

from case_file_auth.infrastructure.ports.store import (
    CaseFileStorePort,
    DocumentUnitLink,
)
from case_file_auth.infrastructure.ports.protection_api import (
    ProtectionApiPort,
    TokenExchangeResult,
)

__all__ = [
    # Store
    "CaseFileStorePort",
    "DocumentUnitLink",
    # Protection API
    "ProtectionApiPort",
    "TokenExchangeResult",
]
