"""
Token handling utilities.

Framework-agnostic token extraction and decode-only claim inspection.

Claims are read WITHOUT signature verification. Only pass tokens that
came from a trusted source: a requesting party token returned by the
identity provider's token endpoint, or an access token that upstream
middleware has already validated.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Any, Mapping

from jose import jwt, JWTError

from case_file_auth.domain.errors import InvalidTokenError


class TokenSource(Enum):
    """Where the access token was extracted from."""

    HEADER = "header"
    COOKIE = "cookie"
    DIRECT = "direct"


@dataclass
class TokenExtractionResult:
    """Result of extracting tokens from an HTTP request."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    source: Optional[TokenSource] = None

    @property
    def is_present(self) -> bool:
        """Check if an access token was found."""
        return bool(self.access_token)


def extract_tokens(
    headers: Optional[Mapping[str, str]] = None,
    cookies: Optional[Mapping[str, str]] = None,
    cookie_name: str = "access_token",
    refresh_cookie_name: str = "refresh_token",
) -> TokenExtractionResult:
    """
    Extract tokens from request headers/cookies.

    The Authorization header wins over cookies.
    """
    headers = headers or {}
    cookies = cookies or {}

    auth_header = headers.get("Authorization") or headers.get("authorization") or ""
    if auth_header[:7].lower() == "bearer ":
        token = auth_header[7:].strip()
        if token:
            return TokenExtractionResult(
                access_token=token,
                refresh_token=headers.get("X-Refresh-Token"),
                source=TokenSource.HEADER,
            )

    access = cookies.get(cookie_name)
    if access:
        return TokenExtractionResult(
            access_token=access,
            refresh_token=cookies.get(refresh_cookie_name),
            source=TokenSource.COOKIE,
        )

    return TokenExtractionResult()


def extract_from_request(request: Any) -> TokenExtractionResult:
    """
    Extract tokens from a request-like object or a bare token string.

    Any object exposing `headers` and (optionally) `cookies` mappings
    works, which covers Starlette/FastAPI and Django requests.
    """
    if request is None:
        return TokenExtractionResult()
    if isinstance(request, str):
        token = request.strip()
        if token[:7].lower() == "bearer ":
            token = token[7:].strip()
        if not token:
            return TokenExtractionResult()
        return TokenExtractionResult(access_token=token, source=TokenSource.DIRECT)

    refreshed = getattr(getattr(request, "state", None), "refreshed_access_token", None)
    if isinstance(refreshed, str) and refreshed:
        return TokenExtractionResult(access_token=refreshed, source=TokenSource.HEADER)

    return extract_tokens(
        getattr(request, "headers", None),
        getattr(request, "cookies", None),
    )


def decode_unverified_claims(token: str) -> dict[str, Any]:
    """
    Decode a JWT payload without verifying it.

    Raises:
        InvalidTokenError: If the token is not a decodable JWT
    """
    if not token:
        raise InvalidTokenError("Empty token", "TOKEN_DECODE_ERROR")
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise InvalidTokenError(str(e), "TOKEN_DECODE_ERROR")
    if not isinstance(claims, dict):
        raise InvalidTokenError("Token payload is not an object", "TOKEN_DECODE_ERROR")
    return claims
