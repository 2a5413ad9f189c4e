"""
Access-check engine.

Decides whether a bearer token grants a scope on a case file by asking
the identity provider for a requesting party token. Every branch fails
closed: ambiguity, errors and unexpected statuses all mean "no access".
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Union

from case_file_auth.application.accounts import AccountMapper
from case_file_auth.application.entitlements import fetch_entitlements, uma_permission
from case_file_auth.application.resources import CaseFileResourceManager
from case_file_auth.context import current_identity, get_access_token
from case_file_auth.domain.value_objects import AccessGrant, CaseFileScope
from case_file_auth.identity import Identity
from case_file_auth.infrastructure.adapters.tokens import extract_from_request
from case_file_auth.infrastructure.ports.protection_api import ProtectionApiPort


logger = logging.getLogger("case_file_auth.application.access")

DENIAL_STATUSES = (401, 403)


class CaseFileAccessChecker:
    """
    UMA-backed access checks for case files.

    A missing resource is provisioned only when the session user is the
    case's own owner; someone else's unprovisioned case is denied
    without touching the network.
    """

    def __init__(
        self,
        protection: ProtectionApiPort,
        resources: CaseFileResourceManager,
        accounts: AccountMapper,
        session_accessor: Callable[[], Awaitable[Identity]] = current_identity,
    ):
        self.protection = protection
        self.resources = resources
        self.accounts = accounts
        self.session_accessor = session_accessor

    async def check_case_file_access(
        self,
        bearer_token_or_request: Any,
        case_id: int,
        scope: Union[CaseFileScope, str] = CaseFileScope.READ,
    ) -> bool:
        """
        Return True only if the provider grants `scope` on the case file.

        Args:
            bearer_token_or_request: The user's access token (optionally
                "Bearer "-prefixed) or a request carrying it
            case_id: Local case id
            scope: CaseFileScope or its string form

        Raises:
            ValueError: If scope is not a case-file scope
        """
        scope_value = CaseFileScope.parse(scope).value
        token = extract_from_request(bearer_token_or_request).access_token
        if not token:
            logger.debug(f"No bearer token for case file {case_id}; denying")
            return False

        context = {"source": "checkCaseFileAccess", "case_id": case_id, "scope": scope_value}
        try:
            resource_id = await self._resolve_resource_id(case_id, context)
            if resource_id is None:
                return False

            permission = uma_permission(resource_id, scope_value)
            response = await fetch_entitlements(self.protection, token, [permission])
            context = {**context, "resource_id": resource_id, "status_code": response.status_code}

            if response.status_code in DENIAL_STATUSES:
                logger.debug(f"Access to case file {case_id} denied", extra=context)
                return False
            if not response.ok:
                logger.warning(
                    f"Unexpected status {response.status_code} from entitlement endpoint",
                    extra=context,
                )
                return False

            return self._grant_allows(response.grant, resource_id, scope_value, context)

        except Exception as e:
            logger.error(f"Error checking case file access: {e}", exc_info=e, extra=context)
            return False

    async def _resolve_resource_id(self, case_id: int, context: dict) -> Optional[str]:
        resource_id = await self.resources.get_case_file_resource_id(case_id)
        if resource_id is not None:
            return resource_id

        identity = await self.session_accessor()
        if not identity.is_authenticated or identity.user_id != case_id:
            logger.warning(
                f"No resource for case file {case_id} and requester is not its owner",
                extra=context,
            )
            return None

        owner = await self.accounts.get_keycloak_user_id_from_user_id(case_id)
        if owner is None:
            owner = identity.subject
        if not owner:
            logger.warning(
                f"Cannot resolve identity provider id for case file owner {case_id}",
                extra=context,
            )
            return None

        logger.info(f"Self-provisioning resource for case file {case_id}", extra=context)
        resource = await self.resources.ensure_case_file_resource(case_id, owner)
        return resource.id

    @staticmethod
    def _grant_allows(
        grant: Optional[AccessGrant], resource_id: str, scope: str, context: dict
    ) -> bool:
        if grant is None or grant.is_empty:
            logger.debug("Entitlement response carried no permissions", extra=context)
            return False
        if grant.allows(resource_id, scope):
            return True
        logger.debug("Requested permission missing from RPT", extra=context)
        return False

    # ═══════════════════════════════════════════════════════════════
    # ENTITLEMENTS
    # ═══════════════════════════════════════════════════════════════

    async def request_entitlements(
        self,
        bearer_token_or_request: Any = None,
        permissions: Optional[list[str]] = None,
    ) -> AccessGrant:
        """
        All permissions the provider grants the token holder.

        Returns an empty grant on any failure.
        """
        token = extract_from_request(bearer_token_or_request).access_token or get_access_token()
        if not token:
            return AccessGrant()
        try:
            response = await fetch_entitlements(self.protection, token, permissions)
        except Exception as e:
            logger.error(
                f"Error requesting entitlements: {e}",
                exc_info=e,
                extra={"source": "requestEntitlements"},
            )
            return AccessGrant()
        if not response.ok or response.grant is None:
            logger.debug(
                f"No entitlements granted (status {response.status_code})",
                extra={"source": "requestEntitlements", "status_code": response.status_code},
            )
            return AccessGrant()
        return response.grant
