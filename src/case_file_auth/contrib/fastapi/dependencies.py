from typing import Optional, Callable, Union
import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from case_file_auth.domain.value_objects import CaseFileScope
from case_file_auth.infrastructure.adapters.tokens import (
    TokenExtractionResult,
    extract_tokens as _extract_tokens,
    extract_from_request,
)
from case_file_auth.middleware.authorization import (
    AuthCheckResult,
    AuthRejection,
    CaseFileAuthorizer,
)

logger = logging.getLogger("case_file_auth.contrib.fastapi")


def extract_tokens(
    request: Request,
    cookie_name: str = "access_token",
    refresh_cookie_name: str = "refresh_token",
) -> TokenExtractionResult:
    """
    Extract tokens from FastAPI request, auto-detecting source.
    """
    return _extract_tokens(
        request.headers,
        request.cookies,
        cookie_name=cookie_name,
        refresh_cookie_name=refresh_cookie_name,
    )


async def get_optional_token(request: Request) -> Optional[str]:
    """Get access token from request (refreshed token, header or cookie)."""
    return extract_from_request(request).access_token


def rejection_to_response(rejection: AuthRejection) -> JSONResponse:
    """Render an authorization rejection as a JSON response."""
    return JSONResponse(status_code=rejection.status, content=rejection.body)


def _route_value(request: Request, param: str) -> Optional[str]:
    value = request.path_params.get(param)
    if value is None:
        value = request.query_params.get(param)
    return value


def require_case_file_access(
    authorizer: CaseFileAuthorizer,
    scope: Union[CaseFileScope, str] = CaseFileScope.READ,
    param: str = "email_id",
    allow_missing: bool = False,
    document_unit: bool = False,
) -> Callable:
    """
    Factory for a dependency that authorizes the case file behind a route parameter.

    The dependency returns the case (user) id, or -1 when `allow_missing`
    let an unlinked identifier through. Rejections raise HTTPException
    with the rejection body as `detail`.

    Example usage:
        @app.get("/api/email/{email_id}")
        async def get_email(
            user_id: int = Depends(require_case_file_access(authorizer)),
        ):
            ...
    """
    required_scope = CaseFileScope.parse(scope)

    async def dependency(request: Request) -> int:
        identifier = _route_value(request, param)
        if document_unit:
            result: AuthCheckResult = await authorizer.check_document_unit_authorization(
                request,
                identifier,
                required_scope=required_scope,
                allow_missing=allow_missing,
            )
        else:
            result = await authorizer.check_case_file_authorization(
                request,
                identifier,
                required_scope=required_scope,
                allow_missing=allow_missing,
            )

        if not result.authorized:
            rejection = result.response
            raise HTTPException(status_code=rejection.status, detail=rejection.body)
        return result.user_id

    return dependency
