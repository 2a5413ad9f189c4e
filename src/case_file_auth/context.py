"""
Request context and context variable management.

Uses contextvars for request-scoped data propagation. Host middleware
sets the context once per request; the access checker reads the
session identity from it.
"""

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Optional

from case_file_auth.identity import Identity, AnonymousIdentity


@dataclass
class RequestContext:
    """Request-scoped context containing identity and metadata."""

    identity: Identity
    access_token: Optional[str] = None
    metadata: dict = field(default_factory=dict)


request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "case_file_request_context", default=None
)


def set_request_context(ctx: RequestContext) -> Token:
    """Bind a context for the current task; pass the token to `reset_request_context`."""
    return request_context.set(ctx)


def reset_request_context(token: Token) -> None:
    request_context.reset(token)


def get_identity() -> Identity:
    """
    Get current identity from context.

    Returns AnonymousIdentity if no context is set.
    """
    ctx = request_context.get()
    return ctx.identity if ctx else AnonymousIdentity()


def get_access_token() -> Optional[str]:
    """Get the access token bound to the current request, if any."""
    ctx = request_context.get()
    return ctx.access_token if ctx else None


async def current_identity() -> Identity:
    """Default session accessor used by the access checker."""
    return get_identity()
