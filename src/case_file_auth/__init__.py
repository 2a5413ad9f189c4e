"""
case-file-auth: per-case-file authorization on Keycloak User-Managed Access.

Resolves route identifiers to case files, provisions one protected
resource per case file and checks scopes through UMA ticket exchanges.
"""

__version__ = "0.1.0"

# Core identity exports
from case_file_auth.identity import (
    Identity,
    AnonymousIdentity,
    AuthenticatedIdentity,
)
from case_file_auth.context import (
    RequestContext,
    request_context,
    set_request_context,
    reset_request_context,
    get_identity,
    get_access_token,
)

# Domain exports
from case_file_auth.domain import (
    CaseFileScope,
    CaseFileResource,
    AccessGrant,
    CaseFileAuthError,
    FeatureNotAvailableError,
)

# Application exports
from case_file_auth.application import (
    CaseFileIdResolver,
    AccountMapper,
    CaseFileResourceManager,
    CaseFileAccessChecker,
)

# Middleware exports
from case_file_auth.middleware import (
    CaseFileAuthorizer,
    AuthCheckResult,
    AuthRejection,
    MISSING_CASE_FILE_USER_ID,
)

__all__ = [
    # Version
    "__version__",
    # Identity
    "Identity",
    "AnonymousIdentity",
    "AuthenticatedIdentity",
    # Context
    "RequestContext",
    "request_context",
    "set_request_context",
    "reset_request_context",
    "get_identity",
    "get_access_token",
    # Domain
    "CaseFileScope",
    "CaseFileResource",
    "AccessGrant",
    "CaseFileAuthError",
    "FeatureNotAvailableError",
    # Application
    "CaseFileIdResolver",
    "AccountMapper",
    "CaseFileResourceManager",
    "CaseFileAccessChecker",
    # Middleware
    "CaseFileAuthorizer",
    "AuthCheckResult",
    "AuthRejection",
    "MISSING_CASE_FILE_USER_ID",
]
