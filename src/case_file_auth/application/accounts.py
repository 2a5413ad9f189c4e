"""
Account / identity mapping.

Resolves local case (user) ids to identity-provider accounts and back,
finds the owner of a document unit, and derives the set of case files a
token holder can see.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from case_file_auth.application.entitlements import EntitlementResponse, fetch_entitlements
from case_file_auth.application.identifiers import CaseFileIdResolver, parse_numeric_id
from case_file_auth.context import current_identity, get_access_token
from case_file_auth.domain.errors import AccountLookupError, log_and_wrap
from case_file_auth.domain.value_objects import (
    RESOURCE_NAME_PREFIX,
    AccessGrant,
    parse_case_file_resource_name,
)
from case_file_auth.identity import Identity
from case_file_auth.infrastructure.adapters.tokens import extract_from_request
from case_file_auth.infrastructure.ports.protection_api import ProtectionApiPort
from case_file_auth.infrastructure.ports.store import CaseFileStorePort


logger = logging.getLogger("case_file_auth.application.accounts")

SessionAccessor = Callable[[], Awaitable[Identity]]


class AccountMapper:
    """
    Lookups between document units, local case ids and provider accounts.

    "Not found" is None; store failures raise AccountLookupError.
    """

    def __init__(
        self,
        store: CaseFileStorePort,
        resolver: CaseFileIdResolver,
        protection: Optional[ProtectionApiPort] = None,
        provider_name: str = "keycloak",
        session_accessor: SessionAccessor = current_identity,
    ):
        self.store = store
        self.resolver = resolver
        self.protection = protection
        self.provider_name = provider_name
        self.session_accessor = session_accessor

    async def get_unit_owner(self, unit_id: Any) -> Optional[int]:
        """Owner case id of a document unit given by numeric id."""
        numeric = parse_numeric_id(unit_id)
        if numeric is None:
            return None
        try:
            return await self.store.get_unit_owner(numeric)
        except Exception as e:
            raise log_and_wrap(
                e,
                source="getUserIdFromUnitId",
                message="Failed to look up case file owner",
                include={"unit_id": numeric},
                error_class=AccountLookupError,
            )

    async def get_user_id_from_unit_id(self, document_unit_or_email_id: Any) -> Optional[int]:
        """
        Owner case id of a document unit given by id or linked UUID.

        Raises:
            AccountLookupError: If the owner lookup fails in the store
        """
        unit_id = await self.resolver.resolve_case_file_id(document_unit_or_email_id)
        if unit_id is None:
            return None
        return await self.get_unit_owner(unit_id)

    async def get_keycloak_user_id_from_user_id(self, user_id: int) -> Optional[str]:
        """Identity-provider account id linked to a local case id."""
        try:
            return await self.store.get_provider_account_id(user_id, self.provider_name)
        except Exception as e:
            raise log_and_wrap(
                e,
                source="getKeycloakUserIdFromUserId",
                message="Failed to look up identity provider account",
                include={"user_id": user_id, "provider": self.provider_name},
                error_class=AccountLookupError,
            )

    async def get_user_id_from_keycloak_user_id(self, subject: str) -> Optional[int]:
        """Local case id linked to an identity-provider account id."""
        try:
            return await self.store.get_user_id_by_provider_account(
                self.provider_name, subject
            )
        except Exception as e:
            raise log_and_wrap(
                e,
                source="getUserIdFromKeycloakUserId",
                message="Failed to look up local user for account",
                include={"subject": subject, "provider": self.provider_name},
                error_class=AccountLookupError,
            )

    # ═══════════════════════════════════════════════════════════════
    # ACCESSIBLE CASE FILES
    # ═══════════════════════════════════════════════════════════════

    async def get_accessible_user_ids(self, token_or_request: Any = None) -> list[int]:
        """
        Case ids the token holder can access, sorted and deduplicated.

        Only the RPT the provider issues for the token is trusted; the
        token's own claims are never read. Granted resource names are
        scanned for "case-file:{id}". The holder's own case id comes from
        the session identity, or from the RPT subject when no session is
        bound, so a new user sees their own case before its resource is
        provisioned.

        Args:
            token_or_request: A bearer token, a request carrying one, or
                None to use the token bound to the current request context
        """
        token = extract_from_request(token_or_request).access_token or get_access_token()
        ids: set[int] = set()

        entitlements: Optional[EntitlementResponse] = None
        if token:
            entitlements = await self._request_all_entitlements(token)
        if entitlements is not None:
            ids.update(self._case_ids_from_grant(entitlements.grant))

        own_id = await self._own_user_id(entitlements.subject if entitlements else None)
        if own_id is not None:
            ids.add(own_id)

        return sorted(ids)

    async def _request_all_entitlements(self, token: str) -> Optional[EntitlementResponse]:
        if self.protection is None:
            logger.debug("No protection client; accessible case files limited to own case")
            return None
        try:
            response = await fetch_entitlements(self.protection, token)
        except Exception as e:
            logger.warning(
                f"Entitlement request failed: {e}",
                extra={"source": "getAccessibleUserIds"},
            )
            return None
        if not response.ok:
            logger.debug(f"Entitlement request returned {response.status_code}")
            return None
        return response

    def _case_ids_from_grant(self, grant: Optional[AccessGrant]) -> set[int]:
        if grant is None:
            return set()
        ids: set[int] = set()
        for resource_id, name in grant.resource_names.items():
            case_id = parse_case_file_resource_name(name)
            if case_id is not None:
                ids.add(case_id)
            elif name.startswith(RESOURCE_NAME_PREFIX):
                # Naming contract broken: entitlement can't be mapped to a case
                logger.warning(
                    f"Skipping resource {resource_id} with malformed case file name {name!r}",
                    extra={"source": "getAccessibleUserIds", "resource_id": resource_id},
                )
            else:
                logger.debug(f"Ignoring non case file resource {name!r}")
        return ids

    async def _own_user_id(self, rpt_subject: Optional[str]) -> Optional[int]:
        identity = await self.session_accessor()
        if identity.is_authenticated and identity.user_id is not None:
            # Session bound to another account than the RPT holder: don't mix them
            if not (rpt_subject and identity.subject and identity.subject != rpt_subject):
                return identity.user_id

        if not rpt_subject:
            return None
        return await self.get_user_id_from_keycloak_user_id(rpt_subject)
