"""
Domain errors for case-file authorization.

These errors provide a consistent interface for reporting failures
across adapters and layers. Authorization decisions never raise them;
data-shaping operations (resource creation, batch resolution) do.
"""

import logging
from typing import Optional, Any


logger = logging.getLogger("case_file_auth.errors")


class AuthDomainError(Exception):
    """Base class for all auth domain errors."""

    def __init__(
        self,
        message: str,
        code: str = "AUTH_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class AuthenticationError(AuthDomainError):
    """Raised when authentication fails (missing, expired or invalid token)."""

    def __init__(
        self,
        message: str = "Authentication failed",
        code: str = "AUTHENTICATION_FAILED",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)


class InvalidTokenError(AuthenticationError):
    """Raised when a token is malformed or cannot be decoded."""

    def __init__(
        self,
        message: str = "Invalid token",
        code: str = "INVALID_TOKEN",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)


class AuthorizationError(AuthDomainError):
    """Raised when the caller holds a valid token but not the case-file scope."""

    def __init__(
        self,
        message: str = "Access denied",
        case_file_id: Optional[int] = None,
        required_scope: Optional[str] = None,
        code: str = "PERMISSION_DENIED",
    ):
        details: dict[str, Any] = {}
        if case_file_id is not None:
            details["caseFileId"] = case_file_id
        if required_scope:
            details["requiredScope"] = required_scope
        super().__init__(message, code, details)
        self.case_file_id = case_file_id
        self.required_scope = required_scope


class CaseFileAuthError(AuthDomainError):
    """
    A failure wrapped with the operation that produced it.

    `source` names the operation (e.g. "createResource"), `details`
    holds the identifiers involved.
    """

    def __init__(
        self,
        message: str,
        source: str = "case_file_auth",
        code: str = "CASE_FILE_AUTH_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.source = source


class ProtectionApiError(CaseFileAuthError):
    """Raised when the identity provider's protection API fails."""

    def __init__(
        self,
        message: str,
        source: str = "protection_api",
        status_code: Optional[int] = None,
        code: str = "PROTECTION_API_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, source, code, details)
        self.status_code = status_code


class ResourceCreationError(CaseFileAuthError):
    """Raised when a case-file resource cannot be created."""

    def __init__(
        self,
        message: str = "Failed to create case file resource",
        source: str = "createResource",
        code: str = "RESOURCE_CREATE_FAILED",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, source, code, details)


class IdentifierResolutionError(CaseFileAuthError):
    """Raised when a batch identifier lookup fails in the store."""

    def __init__(
        self,
        message: str = "Failed to resolve case file identifiers",
        source: str = "resolveCaseFileIdBatch",
        code: str = "IDENTIFIER_RESOLUTION_FAILED",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, source, code, details)


class AccountLookupError(CaseFileAuthError):
    """Raised when an account/identity lookup fails in the store."""

    def __init__(
        self,
        message: str = "Failed to look up account",
        source: str = "accounts",
        code: str = "ACCOUNT_LOOKUP_FAILED",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, source, code, details)


class FeatureNotAvailableError(AuthDomainError):
    """Raised by extension points that are declared but not implemented yet."""

    def __init__(
        self,
        message: str = "Feature not available",
        code: str = "NOT_AVAILABLE",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)


def log_and_wrap(
    error: BaseException,
    *,
    source: str,
    message: str,
    include: Optional[dict[str, Any]] = None,
    error_class: type[CaseFileAuthError] = CaseFileAuthError,
) -> CaseFileAuthError:
    """
    Log an error with context and return it wrapped.

    Errors already of `error_class` are returned unchanged (and not
    logged twice). The caller raises the result:

        except SQLAlchemyError as e:
            raise log_and_wrap(e, source="getUserIdFromUnitId", message="...")
    """
    if isinstance(error, error_class):
        return error

    details = dict(include or {})
    logger.error(
        f"{source}: {message}",
        exc_info=error,
        extra={"source": source, **{f"ctx_{k}": v for k, v in details.items()}},
    )
    wrapped = error_class(
        f"{message}: {error}",
        source=source,
        details=details,
    )
    wrapped.__cause__ = error
    return wrapped
