from typing import Optional, List, Callable, Awaitable
import logging
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from case_file_auth.context import (
    RequestContext,
    set_request_context,
    reset_request_context,
)
from case_file_auth.identity import Identity, AnonymousIdentity
from case_file_auth.infrastructure.adapters.tokens import extract_from_request

logger = logging.getLogger("case_file_auth.contrib.fastapi")

IdentityLoader = Callable[[Request, str], Awaitable[Optional[Identity]]]


class CaseFileContextMiddleware(BaseHTTPMiddleware):
    """
    Bind the session identity and access token to the request context.

    `identity_loader` maps a validated request and its access token to
    the host's Identity (local case id + provider subject). Token
    validation itself belongs to the host's authentication layer.
    """

    def __init__(
        self,
        app,
        identity_loader: IdentityLoader,
        public_paths: Optional[List[str]] = None,
    ):
        super().__init__(app)
        self.identity_loader = identity_loader
        self.public_paths = public_paths or ["/health"]

    def _is_public(self, path: str) -> bool:
        return any(path.startswith(p) for p in self.public_paths)

    async def _load_identity(self, request: Request, access_token: Optional[str]) -> Identity:
        if not access_token:
            return AnonymousIdentity()
        try:
            identity = await self.identity_loader(request, access_token)
        except Exception as e:
            logger.warning(f"Identity lookup failed: {e}")
            return AnonymousIdentity()
        return identity or AnonymousIdentity()

    async def dispatch(self, request: Request, call_next) -> Response:
        if self._is_public(request.url.path):
            return await call_next(request)

        access_token = extract_from_request(request).access_token
        identity = await self._load_identity(request, access_token)
        token = set_request_context(
            RequestContext(identity=identity, access_token=access_token)
        )
        try:
            return await call_next(request)
        finally:
            reset_request_context(token)
