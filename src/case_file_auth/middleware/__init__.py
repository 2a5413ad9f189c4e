"""Route-level authorization for case files."""

from case_file_auth.middleware.authorization import (
    CaseFileAuthorizer,
    AuthCheckResult,
    AuthRejection,
    MISSING_CASE_FILE_USER_ID,
    # Reason strings
    CASE_FILE_NOT_FOUND_FOR_EMAIL,
    CASE_FILE_NOT_FOUND_FOR_DOCUMENT,
    FORBIDDEN,
    UNAUTHORIZED,
    INTERNAL_ERROR,
)

__all__ = [
    "CaseFileAuthorizer",
    "AuthCheckResult",
    "AuthRejection",
    "MISSING_CASE_FILE_USER_ID",
    # Reason strings
    "CASE_FILE_NOT_FOUND_FOR_EMAIL",
    "CASE_FILE_NOT_FOUND_FOR_DOCUMENT",
    "FORBIDDEN",
    "UNAUTHORIZED",
    "INTERNAL_ERROR",
]
