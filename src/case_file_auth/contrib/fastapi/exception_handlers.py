"""
Exception handlers for FastAPI.

Maps domain errors to HTTP responses.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from case_file_auth.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    CaseFileAuthError,
    FeatureNotAvailableError,
)


def _error_body(exc) -> dict:
    return {"error": exc.code, "message": exc.message, "details": exc.details}


async def authentication_error_handler(request: Request, exc: AuthenticationError):
    """Handle AuthenticationError (401)."""
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=_error_body(exc))


async def authorization_error_handler(request: Request, exc: AuthorizationError):
    """Handle AuthorizationError (403)."""
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=_error_body(exc))


async def feature_not_available_handler(request: Request, exc: FeatureNotAvailableError):
    """Handle FeatureNotAvailableError (501)."""
    return JSONResponse(status_code=status.HTTP_501_NOT_IMPLEMENTED, content=_error_body(exc))


async def case_file_auth_error_handler(request: Request, exc: CaseFileAuthError):
    """Handle wrapped infrastructure failures (502); details stay in the logs."""
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": exc.code, "message": exc.message},
    )


def register_exception_handlers(app):
    """
    Register uniform exception handlers for the FastAPI app.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(AuthorizationError, authorization_error_handler)
    app.add_exception_handler(FeatureNotAvailableError, feature_not_available_handler)
    app.add_exception_handler(CaseFileAuthError, case_file_auth_error_handler)
