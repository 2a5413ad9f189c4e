"""
Tests for the deprecated aliases.
"""

import logging
import warnings

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from case_file_auth import compat
from case_file_auth.application.accounts import AccountMapper
from case_file_auth.application.identifiers import CaseFileIdResolver
from case_file_auth.middleware.authorization import AuthCheckResult, CaseFileAuthorizer

EMAIL_UUID = "0b4c2e7a-91d3-4f6e-8a2b-5c7d9e1f3a4b"


@pytest.mark.asyncio
async def test_resolve_email_id_to_user_id(store, caplog):
    accounts = AccountMapper(store, CaseFileIdResolver(store))

    with caplog.at_level(logging.WARNING, logger="case_file_auth.compat"):
        with pytest.warns(DeprecationWarning):
            assert await compat.resolve_email_id_to_user_id(accounts, EMAIL_UUID) == 42
    assert len(caplog.records) == 1


@pytest.mark.asyncio
async def test_get_case_file_id_from_document_id(store):
    resolver = CaseFileIdResolver(store)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        assert await compat.get_case_file_id_from_document_id(resolver, EMAIL_UUID) == 999
        assert await compat.get_case_file_id_from_document_id(resolver, "12") == 12

    deprecations = [w for w in caught if issubclass(w.category, DeprecationWarning)]
    assert len(deprecations) == 2


@pytest.mark.asyncio
async def test_check_email_authorization_delegates():
    authorizer = MagicMock(spec=CaseFileAuthorizer)
    authorizer.check_case_file_authorization = AsyncMock(return_value=AuthCheckResult.allow(42))
    request = SimpleNamespace(headers={}, cookies={})

    with pytest.warns(DeprecationWarning):
        result = await compat.check_email_authorization(
            authorizer, request, EMAIL_UUID, allow_missing=True
        )

    assert result.user_id == 42
    authorizer.check_case_file_authorization.assert_awaited_once()
    assert authorizer.check_case_file_authorization.await_args.kwargs["allow_missing"] is True
