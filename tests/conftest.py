"""
Pytest configuration for case-file-auth tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from jose import jwt

from case_file_auth.context import RequestContext, set_request_context, reset_request_context
from case_file_auth.domain.value_objects import CaseFileResource
from case_file_auth.identity import AuthenticatedIdentity
from case_file_auth.infrastructure.adapters.memory_store import InMemoryCaseFileStore
from case_file_auth.infrastructure.ports.protection_api import (
    ProtectionApiPort,
    TokenExchangeResult,
)

EMAIL_UUID = "0b4c2e7a-91d3-4f6e-8a2b-5c7d9e1f3a4b"
PROPERTY_UUID = "7e2f9c41-6b8a-4d3e-9f10-2a3b4c5d6e7f"


def make_token(claims: dict) -> str:
    """Unsigned-in-practice JWT; only ever decoded without verification."""
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def make_rpt(*permissions: dict, **extra) -> str:
    return make_token({"sub": "ext-42", "authorization": {"permissions": list(permissions)}, **extra})


@pytest.fixture
def authenticated_identity():
    """Fixture providing the owner of case 42."""
    return AuthenticatedIdentity(user_id=42, subject="ext-42", username="owner")


@pytest.fixture
def bind_identity():
    """Bind an identity (and token) to the request context for one test."""
    tokens = []

    def _bind(identity, access_token=None):
        tokens.append(set_request_context(RequestContext(identity=identity, access_token=access_token)))

    yield _bind
    for token in reversed(tokens):
        try:
            reset_request_context(token)
        except ValueError:
            # Bound inside an async test's own (copied) context; nothing leaked here.
            pass


# -----------------------------------------------------------------------------
# STORES
# -----------------------------------------------------------------------------


@pytest.fixture
def store():
    store = InMemoryCaseFileStore()
    store.add_unit(999, user_id=42, email_id=EMAIL_UUID)
    store.add_unit(1000, user_id=7, document_property_id=PROPERTY_UUID)
    store.add_account(42, "keycloak", "ext-42")
    store.add_account(7, "keycloak", "ext-7")
    return store


# -----------------------------------------------------------------------------
# MOCKS
# -----------------------------------------------------------------------------


@pytest.fixture
def existing_resource():
    return CaseFileResource.for_case_file(42, "ext-42").with_id("rid-42")


@pytest.fixture
def mock_protection():
    mock = MagicMock(spec=ProtectionApiPort)
    mock.get_service_token = AsyncMock(return_value="service-token")
    mock.find_resource_by_name = AsyncMock(return_value=None)
    mock.get_resource = AsyncMock(return_value=None)
    mock.create_resource = AsyncMock(side_effect=lambda resource: resource.with_id(f"rid-{resource.case_file_id}"))
    mock.exchange_uma_ticket = AsyncMock(return_value=TokenExchangeResult(status_code=403))
    return mock


def granted(resource_id: str, *scopes: str) -> TokenExchangeResult:
    """A 200 exchange whose RPT grants `scopes` on `resource_id`."""
    rpt = make_rpt({"rsid": resource_id, "rsname": "case-file:42", "scopes": list(scopes)})
    return TokenExchangeResult(status_code=200, body={"access_token": rpt})


@pytest.fixture
def token_factory():
    """Build decode-only JWTs from claims."""
    return make_token


@pytest.fixture
def grant_result():
    """Build a 200 exchange result whose RPT grants scopes on a resource."""
    return granted


@pytest.fixture
def rpt_factory():
    return make_rpt
