"""
FastAPI integration for case-file-auth.

Provides route dependencies, request-context middleware and exception
handlers for case-file authorization in FastAPI applications.
"""

from .dependencies import (
    extract_tokens,
    get_optional_token,
    rejection_to_response,
    require_case_file_access,
)
from .middleware import CaseFileContextMiddleware
from .exception_handlers import register_exception_handlers

__all__ = [
    "extract_tokens",
    "get_optional_token",
    "rejection_to_response",
    "require_case_file_access",
    "CaseFileContextMiddleware",
    "register_exception_handlers",
]
