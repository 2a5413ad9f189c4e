"""Domain layer for case-file authorization."""

from case_file_auth.domain.value_objects import (
    RESOURCE_TYPE,
    CaseFileScope,
    CaseFileAcl,
    CaseFileResource,
    AccessGrant,
    ResolvedCaseIdentity,
    case_file_resource_name,
    parse_case_file_resource_name,
)
from case_file_auth.domain.errors import (
    AuthDomainError,
    AuthenticationError,
    InvalidTokenError,
    AuthorizationError,
    CaseFileAuthError,
    ProtectionApiError,
    ResourceCreationError,
    IdentifierResolutionError,
    AccountLookupError,
    FeatureNotAvailableError,
    log_and_wrap,
)

__all__ = [
    # Value Objects
    "RESOURCE_TYPE",
    "CaseFileScope",
    "CaseFileAcl",
    "CaseFileResource",
    "AccessGrant",
    "ResolvedCaseIdentity",
    "case_file_resource_name",
    "parse_case_file_resource_name",
    # Errors
    "AuthDomainError",
    "AuthenticationError",
    "InvalidTokenError",
    "AuthorizationError",
    "CaseFileAuthError",
    "ProtectionApiError",
    "ResourceCreationError",
    "IdentifierResolutionError",
    "AccountLookupError",
    "FeatureNotAvailableError",
    "log_and_wrap",
]
