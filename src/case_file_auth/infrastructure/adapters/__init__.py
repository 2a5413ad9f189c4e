"""Concrete infrastructure adapters (Keycloak, stores, tokens)."""

# Token handling
from case_file_auth.infrastructure.adapters.tokens import (
    TokenSource,
    TokenExtractionResult,
    extract_tokens,
    extract_from_request,
    decode_unverified_claims,
)

# Keycloak protection API
from case_file_auth.infrastructure.adapters.keycloak_protection import (
    KeycloakProtectionClient,
    KeycloakProtectionConfig,
    ServiceTokenCache,
    UMA_TICKET_GRANT,
)

# Stores
from case_file_auth.infrastructure.adapters.memory_store import InMemoryCaseFileStore
from case_file_auth.infrastructure.adapters.sqlalchemy_store import (
    Base as SQLAlchemyBase,
    DocumentUnitModel,
    AccountModel,
    SQLAlchemyCaseFileStore,
)

__all__ = [
    # Token Handling
    "TokenSource",
    "TokenExtractionResult",
    "extract_tokens",
    "extract_from_request",
    "decode_unverified_claims",
    # Keycloak
    "KeycloakProtectionClient",
    "KeycloakProtectionConfig",
    "ServiceTokenCache",
    "UMA_TICKET_GRANT",
    # Stores
    "InMemoryCaseFileStore",
    "SQLAlchemyBase",
    "DocumentUnitModel",
    "AccountModel",
    "SQLAlchemyCaseFileStore",
]
