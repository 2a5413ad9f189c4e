"""
Factory functions for automatic service creation.

Implements the 'if not provided, create' pattern for framework integrations.
"""

import os
import logging
from typing import Optional

from case_file_auth.application.access import CaseFileAccessChecker
from case_file_auth.application.accounts import AccountMapper, SessionAccessor
from case_file_auth.application.identifiers import CaseFileIdResolver
from case_file_auth.application.resources import CaseFileResourceManager
from case_file_auth.context import current_identity
from case_file_auth.infrastructure.adapters.keycloak_protection import (
    KeycloakProtectionClient,
    KeycloakProtectionConfig,
)
from case_file_auth.infrastructure.adapters.memory_store import InMemoryCaseFileStore
from case_file_auth.infrastructure.ports.protection_api import ProtectionApiPort
from case_file_auth.infrastructure.ports.store import CaseFileStorePort
from case_file_auth.middleware.authorization import CaseFileAuthorizer

logger = logging.getLogger("case_file_auth.factory")


def _env_flag(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


def create_default_protection_config() -> Optional[KeycloakProtectionConfig]:
    """
    Build the protection config from environment variables.

    AUTH_KEYCLOAK_ISSUER takes precedence over AUTH_KEYCLOAK_SERVER_URL +
    AUTH_KEYCLOAK_REALM. Returns None when no server is configured.
    """
    client_id = os.environ.get("AUTH_KEYCLOAK_CLIENT_ID", "")
    options = dict(
        client_secret=os.environ.get("AUTH_KEYCLOAK_CLIENT_SECRET"),
        audience=os.environ.get("AUTH_KEYCLOAK_AUDIENCE") or None,
        verify=_env_flag("AUTH_KEYCLOAK_VERIFY"),
        timeout=float(os.environ.get("AUTH_KEYCLOAK_TIMEOUT", "10")),
    )

    issuer = os.environ.get("AUTH_KEYCLOAK_ISSUER")
    if issuer:
        return KeycloakProtectionConfig.from_issuer(issuer, client_id, **options)

    server_url = os.environ.get("AUTH_KEYCLOAK_SERVER_URL")
    if server_url:
        return KeycloakProtectionConfig(
            server_url=server_url,
            realm=os.environ.get("AUTH_KEYCLOAK_REALM", "master"),
            client_id=client_id,
            **options,
        )

    return None


def create_default_protection_client() -> Optional[KeycloakProtectionClient]:
    """Create a protection client from the environment, or None if unconfigured."""
    config = create_default_protection_config()
    if config is None:
        logger.debug("No Keycloak server configured; protection client not created")
        return None
    if not config.client_id:
        logger.warning("AUTH_KEYCLOAK_CLIENT_ID is not set; service tokens will fail")
    return KeycloakProtectionClient(config)


def create_default_store() -> CaseFileStorePort:
    """Create a default in-memory store."""
    return InMemoryCaseFileStore()


def create_authorizer(
    store: CaseFileStorePort,
    protection: Optional[ProtectionApiPort] = None,
    session_accessor: SessionAccessor = current_identity,
    provider_name: str = "keycloak",
) -> CaseFileAuthorizer:
    """
    Wire the full component graph around one store and protection client.

    Raises:
        RuntimeError: If no protection client is given and none can be
            created from the environment
    """
    if protection is None:
        protection = create_default_protection_client()
    if protection is None:
        raise RuntimeError("No protection API client available; configure AUTH_KEYCLOAK_*")

    resolver = CaseFileIdResolver(store)
    accounts = AccountMapper(
        store,
        resolver,
        protection=protection,
        provider_name=provider_name,
        session_accessor=session_accessor,
    )
    resources = CaseFileResourceManager(protection)
    checker = CaseFileAccessChecker(
        protection, resources, accounts, session_accessor=session_accessor
    )
    return CaseFileAuthorizer(accounts, checker)
