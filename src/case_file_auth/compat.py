"""
Deprecated aliases kept for callers of the old identifier-resolution names.

Each shim logs one warning and emits one DeprecationWarning per call,
then delegates to the component instance passed in.
"""

import logging
import warnings
from typing import Any, Optional

from case_file_auth.application.accounts import AccountMapper
from case_file_auth.application.identifiers import CaseFileIdResolver
from case_file_auth.domain.value_objects import CaseFileScope
from case_file_auth.middleware.authorization import AuthCheckResult, CaseFileAuthorizer


logger = logging.getLogger("case_file_auth.compat")


def _deprecated(old: str, new: str) -> None:
    logger.warning(f"{old} is deprecated; use {new}")
    warnings.warn(f"{old} is deprecated; use {new}", DeprecationWarning, stacklevel=3)


async def resolve_email_id_to_user_id(
    accounts: AccountMapper, email_id: Any
) -> Optional[int]:
    _deprecated("resolve_email_id_to_user_id", "AccountMapper.get_user_id_from_unit_id")
    return await accounts.get_user_id_from_unit_id(email_id)


async def get_case_file_id_from_document_id(
    resolver: CaseFileIdResolver, document_id: Any
) -> Optional[int]:
    _deprecated(
        "get_case_file_id_from_document_id", "CaseFileIdResolver.resolve_case_file_id"
    )
    return await resolver.resolve_case_file_id(document_id)


async def check_email_authorization(
    authorizer: CaseFileAuthorizer,
    request: Any,
    email_id: Any,
    required_scope: CaseFileScope = CaseFileScope.READ,
    allow_missing: bool = False,
) -> AuthCheckResult:
    _deprecated(
        "check_email_authorization", "CaseFileAuthorizer.check_case_file_authorization"
    )
    return await authorizer.check_case_file_authorization(
        request, email_id, required_scope=required_scope, allow_missing=allow_missing
    )
