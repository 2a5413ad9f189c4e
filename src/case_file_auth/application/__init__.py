"""
Application layer: identifier resolution, account mapping, resource
lifecycle and access checks.
"""

from case_file_auth.application.identifiers import (
    CaseFileIdResolver,
    is_uuid_v4,
    parse_numeric_id,
)
from case_file_auth.application.accounts import AccountMapper
from case_file_auth.application.entitlements import (
    EntitlementResponse,
    fetch_entitlements,
    uma_permission,
)
from case_file_auth.application.resources import CaseFileResourceManager
from case_file_auth.application.access import CaseFileAccessChecker

__all__ = [
    "CaseFileIdResolver",
    "is_uuid_v4",
    "parse_numeric_id",
    "AccountMapper",
    "EntitlementResponse",
    "fetch_entitlements",
    "uma_permission",
    "CaseFileResourceManager",
    "CaseFileAccessChecker",
]
