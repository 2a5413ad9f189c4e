"""
Route-level authorization for case files.

Combines identifier resolution, token extraction and the access check
into one authorize-or-reject decision. The outcome is framework
agnostic: an AuthCheckResult carrying either the resolved case id or an
HTTP-style rejection (status + JSON body).

Decision order:
1. Resolve the route identifier to its case id (404, or the -1 sentinel
   when `allow_missing` is set)
2. Extract the bearer token (401)
3. Check the required scope against the identity provider (403)
4. Any unexpected exception → 500
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union
import logging

from case_file_auth.application.access import CaseFileAccessChecker
from case_file_auth.application.accounts import AccountMapper
from case_file_auth.domain.value_objects import CaseFileScope
from case_file_auth.infrastructure.adapters.tokens import extract_from_request


logger = logging.getLogger("case_file_auth.middleware")

CASE_FILE_NOT_FOUND_FOR_EMAIL = "Case file not found for this email"
CASE_FILE_NOT_FOUND_FOR_DOCUMENT = "Case file not found for this document"
FORBIDDEN = "Forbidden - Insufficient permissions for this case file"
UNAUTHORIZED = "Unauthorized - No access token"
INTERNAL_ERROR = "Internal server error during authorization"

# Returned as user_id when allow_missing lets an unlinked identifier through
MISSING_CASE_FILE_USER_ID = -1


@dataclass(frozen=True)
class AuthRejection:
    """HTTP-style rejection payload."""

    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def with_reason(cls, status: int, reason: str, **extra: Any) -> "AuthRejection":
        return cls(status=status, body={"error": reason, **extra})

    @property
    def reason(self) -> str:
        return self.body.get("error", "")


@dataclass(frozen=True)
class AuthCheckResult:
    """
    Outcome of a route-level check.

    Authorized results carry `user_id` (the case id, or -1 for an
    allowed missing case file); rejected results carry `response`.
    """

    authorized: bool
    user_id: Optional[int] = None
    response: Optional[AuthRejection] = None

    @classmethod
    def allow(cls, user_id: int) -> "AuthCheckResult":
        return cls(authorized=True, user_id=user_id)

    @classmethod
    def deny(cls, status: int, reason: str, **extra: Any) -> "AuthCheckResult":
        return cls(authorized=False, response=AuthRejection.with_reason(status, reason, **extra))

    @property
    def is_missing(self) -> bool:
        return self.authorized and self.user_id == MISSING_CASE_FILE_USER_ID


class CaseFileAuthorizer:
    """
    Authorize a request against the case file behind a route identifier.

    Example usage:
        authorizer = CaseFileAuthorizer(accounts, access_checker)
        result = await authorizer.check_case_file_authorization(
            request, email_id, required_scope=CaseFileScope.WRITE
        )
        if not result.authorized:
            return JSONResponse(result.response.body, status_code=result.response.status)
    """

    def __init__(self, accounts: AccountMapper, access_checker: CaseFileAccessChecker):
        self.accounts = accounts
        self.access_checker = access_checker

    async def check_case_file_authorization(
        self,
        request: Any,
        case_file_document_id_or_email_id: Any,
        *,
        required_scope: Union[CaseFileScope, str] = CaseFileScope.READ,
        allow_missing: bool = False,
    ) -> AuthCheckResult:
        """Authorize by e-mail id, document-property id or document-unit id."""
        return await self._authorize(
            request,
            case_file_document_id_or_email_id,
            self.accounts.get_user_id_from_unit_id,
            not_found=CASE_FILE_NOT_FOUND_FOR_EMAIL,
            required_scope=required_scope,
            allow_missing=allow_missing,
        )

    async def check_document_unit_authorization(
        self,
        request: Any,
        unit_id: Any,
        *,
        required_scope: Union[CaseFileScope, str] = CaseFileScope.READ,
        allow_missing: bool = False,
    ) -> AuthCheckResult:
        """Authorize by numeric document-unit id only."""
        return await self._authorize(
            request,
            unit_id,
            self.accounts.get_unit_owner,
            not_found=CASE_FILE_NOT_FOUND_FOR_DOCUMENT,
            required_scope=required_scope,
            allow_missing=allow_missing,
        )

    async def _authorize(
        self,
        request: Any,
        identifier: Any,
        resolve_owner,
        *,
        not_found: str,
        required_scope: Union[CaseFileScope, str],
        allow_missing: bool,
    ) -> AuthCheckResult:
        scope = CaseFileScope.parse(required_scope)
        try:
            user_id = await resolve_owner(identifier)
            if user_id is None:
                if allow_missing:
                    logger.debug(f"No case file for {identifier!r}; allowed as missing")
                    return AuthCheckResult.allow(MISSING_CASE_FILE_USER_ID)
                logger.debug(f"No case file for {identifier!r}")
                return AuthCheckResult.deny(404, not_found)

            token = extract_from_request(request).access_token
            if not token:
                return AuthCheckResult.deny(401, UNAUTHORIZED)

            allowed = await self.access_checker.check_case_file_access(token, user_id, scope)
            if not allowed:
                logger.debug(
                    f"Denied {scope.value} on case file {user_id}",
                    extra={"case_id": user_id, "scope": scope.value},
                )
                return AuthCheckResult.deny(403, FORBIDDEN, requiredScope=scope.value)

            return AuthCheckResult.allow(user_id)

        except Exception as e:
            logger.error(
                f"Error during case file authorization: {e}",
                exc_info=e,
                extra={"source": "checkCaseFileAuthorization"},
            )
            return AuthCheckResult.deny(500, INTERNAL_ERROR)
