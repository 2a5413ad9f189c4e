"""
Tests for token extraction and decode-only claims.
"""

import pytest
from types import SimpleNamespace

from case_file_auth.domain.errors import InvalidTokenError
from case_file_auth.infrastructure.adapters.tokens import (
    TokenSource,
    decode_unverified_claims,
    extract_from_request,
    extract_tokens,
)


def test_header_wins_over_cookie():
    result = extract_tokens(
        {"Authorization": "Bearer header-token", "X-Refresh-Token": "rt"},
        {"access_token": "cookie-token"},
    )
    assert result.access_token == "header-token"
    assert result.refresh_token == "rt"
    assert result.source == TokenSource.HEADER


def test_cookie_fallback():
    result = extract_tokens({}, {"access_token": "cookie-token", "refresh_token": "rt"})
    assert result.access_token == "cookie-token"
    assert result.refresh_token == "rt"
    assert result.source == TokenSource.COOKIE


def test_non_bearer_header_ignored():
    result = extract_tokens({"Authorization": "Basic abc"}, None)
    assert not result.is_present


def test_bare_token_string():
    assert extract_from_request("Bearer abc").access_token == "abc"
    assert extract_from_request("abc").source == TokenSource.DIRECT
    assert not extract_from_request("   ").is_present
    assert not extract_from_request(None).is_present


def test_request_like_object():
    request = SimpleNamespace(
        headers={"authorization": "bearer from-header"},
        cookies={},
        state=SimpleNamespace(),
    )
    assert extract_from_request(request).access_token == "from-header"


def test_refreshed_token_on_request_state_wins():
    request = SimpleNamespace(
        headers={"Authorization": "Bearer stale"},
        cookies={},
        state=SimpleNamespace(refreshed_access_token="fresh"),
    )
    assert extract_from_request(request).access_token == "fresh"


def test_decode_unverified_claims(token_factory):
    token = token_factory({"sub": "ext-42", "authorization": {"permissions": []}})
    claims = decode_unverified_claims(token)
    assert claims["sub"] == "ext-42"
    assert claims["authorization"] == {"permissions": []}


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_decode_rejects_garbage(token):
    with pytest.raises(InvalidTokenError) as exc:
        decode_unverified_claims(token)
    assert exc.value.code == "TOKEN_DECODE_ERROR"
