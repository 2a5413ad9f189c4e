"""
Tests for route-level case-file authorization.
"""

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from case_file_auth.application.access import CaseFileAccessChecker
from case_file_auth.application.accounts import AccountMapper
from case_file_auth.application.identifiers import CaseFileIdResolver
from case_file_auth.domain.value_objects import CaseFileScope
from case_file_auth.middleware.authorization import (
    AuthCheckResult,
    CaseFileAuthorizer,
    MISSING_CASE_FILE_USER_ID,
)

EMAIL_UUID = "0b4c2e7a-91d3-4f6e-8a2b-5c7d9e1f3a4b"
UNKNOWN_UUID = "7e2f9c41-6b8a-4d3e-9f10-000000000000"


def make_request(token=None, cookie=None):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    cookies = {"access_token": cookie} if cookie else {}
    return SimpleNamespace(headers=headers, cookies=cookies, state=SimpleNamespace())


@pytest.fixture
def mock_checker():
    mock = MagicMock(spec=CaseFileAccessChecker)
    mock.check_case_file_access = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def authorizer(store, mock_checker):
    accounts = AccountMapper(store, CaseFileIdResolver(store))
    return CaseFileAuthorizer(accounts, mock_checker)


@pytest.mark.asyncio
async def test_authorized_by_email_id(authorizer, mock_checker):
    result = await authorizer.check_case_file_authorization(make_request("user-token"), EMAIL_UUID)

    assert result == AuthCheckResult(authorized=True, user_id=42)
    mock_checker.check_case_file_access.assert_awaited_once_with(
        "user-token", 42, CaseFileScope.READ
    )


@pytest.mark.asyncio
async def test_cookie_token_accepted(authorizer, mock_checker):
    result = await authorizer.check_case_file_authorization(make_request(cookie="c-token"), 999)

    assert result.authorized
    assert mock_checker.check_case_file_access.await_args.args[0] == "c-token"


@pytest.mark.asyncio
async def test_not_found(authorizer, mock_checker):
    result = await authorizer.check_case_file_authorization(make_request("user-token"), UNKNOWN_UUID)

    assert not result.authorized
    assert result.response.status == 404
    assert result.response.body == {"error": "Case file not found for this email"}
    mock_checker.check_case_file_access.assert_not_called()


@pytest.mark.asyncio
async def test_allow_missing_sentinel(authorizer, mock_checker):
    result = await authorizer.check_case_file_authorization(
        make_request(), UNKNOWN_UUID, allow_missing=True
    )

    assert result.authorized
    assert result.user_id == MISSING_CASE_FILE_USER_ID == -1
    assert result.is_missing
    mock_checker.check_case_file_access.assert_not_called()


@pytest.mark.asyncio
async def test_missing_token(authorizer, mock_checker):
    result = await authorizer.check_case_file_authorization(make_request(), EMAIL_UUID)

    assert result.response.status == 401
    assert result.response.reason == "Unauthorized - No access token"
    mock_checker.check_case_file_access.assert_not_called()


@pytest.mark.asyncio
async def test_forbidden_echoes_scope(authorizer, mock_checker):
    mock_checker.check_case_file_access.return_value = False

    result = await authorizer.check_case_file_authorization(
        make_request("user-token"), EMAIL_UUID, required_scope="write"
    )

    assert result.response.status == 403
    assert result.response.body == {
        "error": "Forbidden - Insufficient permissions for this case file",
        "requiredScope": "case-file:write",
    }


@pytest.mark.asyncio
async def test_internal_error(authorizer, mock_checker):
    mock_checker.check_case_file_access.side_effect = RuntimeError("boom")

    result = await authorizer.check_case_file_authorization(make_request("user-token"), EMAIL_UUID)

    assert result.response.status == 500
    assert result.response.reason == "Internal server error during authorization"


@pytest.mark.asyncio
async def test_store_failure_is_internal_error(store, mock_checker):
    store.get_unit_owner = AsyncMock(side_effect=RuntimeError("db down"))
    authorizer = CaseFileAuthorizer(AccountMapper(store, CaseFileIdResolver(store)), mock_checker)

    result = await authorizer.check_case_file_authorization(make_request("user-token"), 999)

    assert result.response.status == 500


# -----------------------------------------------------------------------------
# Document-unit variant
# -----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_document_unit_authorized(authorizer, mock_checker):
    result = await authorizer.check_document_unit_authorization(
        "Bearer user-token", "1000", required_scope=CaseFileScope.ADMIN
    )

    assert result == AuthCheckResult(authorized=True, user_id=7)
    mock_checker.check_case_file_access.assert_awaited_once_with(
        "user-token", 7, CaseFileScope.ADMIN
    )


@pytest.mark.asyncio
async def test_document_unit_does_not_resolve_uuids(authorizer, store):
    result = await authorizer.check_document_unit_authorization(make_request("user-token"), EMAIL_UUID)

    assert result.response.status == 404
    assert result.response.reason == "Case file not found for this document"
    assert store.query_count == 0


@pytest.mark.asyncio
async def test_document_unit_allow_missing(authorizer):
    result = await authorizer.check_document_unit_authorization(
        make_request("user-token"), 424242, allow_missing=True
    )
    assert result.user_id == -1
