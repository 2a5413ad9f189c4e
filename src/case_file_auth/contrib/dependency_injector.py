"""
Dependency Injector integration for case-file-auth.

Provides an IoC Container wiring every component as an explicit
instance. Host applications can extend this container or use it directly.

Usage:
    from case_file_auth.contrib.dependency_injector import CaseFileAuthContainer

    class AppContainer(CaseFileAuthContainer):
        store = providers.Singleton(
            SQLAlchemyCaseFileStore, session_factory=my_session_factory
        )

    container = AppContainer()
    container.config.from_dict({
        "keycloak": {
            "server_url": "https://kc.example.com",
            "realm": "cases",
            "client_id": "case-files",
            "client_secret": "...",
        }
    })
    authorizer = container.authorizer()
"""

from dependency_injector import containers, providers

from case_file_auth.application.access import CaseFileAccessChecker
from case_file_auth.application.accounts import AccountMapper
from case_file_auth.application.identifiers import CaseFileIdResolver
from case_file_auth.application.resources import CaseFileResourceManager
from case_file_auth.context import current_identity
from case_file_auth.infrastructure.adapters.keycloak_protection import (
    KeycloakProtectionClient,
    KeycloakProtectionConfig,
)
from case_file_auth.infrastructure.adapters.memory_store import InMemoryCaseFileStore
from case_file_auth.middleware.authorization import CaseFileAuthorizer


class CaseFileAuthContainer(containers.DeclarativeContainer):
    """
    IoC Container for case-file authorization.

    External dependencies (can be overridden by host app):
    - store: CaseFileStorePort implementation (default: InMemoryCaseFileStore)
    - protection_client: ProtectionApiPort implementation (default: Keycloak)
    - session_accessor: async callable returning the session Identity
      (default: the request-context identity)

    Config requirements (under config.keycloak.*):
    - server_url, realm, client_id, client_secret
    - audience (default: client_id), verify (default: True),
      timeout (default: 10.0), provider_name (default: "keycloak")
    """

    config = providers.Configuration(
        default={
            "keycloak": {
                "audience": None,
                "verify": True,
                "timeout": 10.0,
                "provider_name": "keycloak",
            }
        }
    )

    # ═══════════════════════════════════════════════════════════════
    # DEFAULT ADAPTERS (can be overridden)
    # ═══════════════════════════════════════════════════════════════

    store = providers.Singleton(InMemoryCaseFileStore)

    protection_config = providers.Factory(
        KeycloakProtectionConfig,
        server_url=config.keycloak.server_url,
        realm=config.keycloak.realm,
        client_id=config.keycloak.client_id,
        client_secret=config.keycloak.client_secret,
        audience=config.keycloak.audience,
        verify=config.keycloak.verify,
        timeout=config.keycloak.timeout,
        provider_name=config.keycloak.provider_name,
    )

    protection_client = providers.Singleton(
        KeycloakProtectionClient,
        config=protection_config,
    )

    session_accessor = providers.Object(current_identity)

    # ═══════════════════════════════════════════════════════════════
    # APPLICATION SERVICES
    # ═══════════════════════════════════════════════════════════════

    resolver = providers.Singleton(CaseFileIdResolver, store=store)

    accounts = providers.Singleton(
        AccountMapper,
        store=store,
        resolver=resolver,
        protection=protection_client,
        provider_name=config.keycloak.provider_name,
        session_accessor=session_accessor,
    )

    resources = providers.Singleton(
        CaseFileResourceManager,
        protection=protection_client,
    )

    access_checker = providers.Singleton(
        CaseFileAccessChecker,
        protection=protection_client,
        resources=resources,
        accounts=accounts,
        session_accessor=session_accessor,
    )

    authorizer = providers.Singleton(
        CaseFileAuthorizer,
        accounts=accounts,
        access_checker=access_checker,
    )
