"""
In-memory Case File Store.

Development/testing implementation of CaseFileStorePort. Not for
production use.
"""

import logging
from typing import Optional, Sequence

from case_file_auth.infrastructure.ports.store import (
    CaseFileStorePort,
    DocumentUnitLink,
)


logger = logging.getLogger("case_file_auth.infrastructure.adapters.memory")


class InMemoryCaseFileStore(CaseFileStorePort):
    """Dict-backed store; counts queries so tests can assert round trips."""

    def __init__(self):
        self._units: dict[int, tuple[DocumentUnitLink, int]] = {}
        self._accounts: dict[tuple[int, str], str] = {}
        self.query_count = 0

    def add_unit(
        self,
        unit_id: int,
        user_id: int,
        email_id: Optional[str] = None,
        document_property_id: Optional[str] = None,
    ) -> None:
        link = DocumentUnitLink(
            unit_id=unit_id,
            email_id=email_id,
            document_property_id=document_property_id,
        )
        self._units[unit_id] = (link, user_id)

    def add_account(self, user_id: int, provider: str, provider_account_id: str) -> None:
        self._accounts[(user_id, provider)] = provider_account_id

    async def find_unit_id_by_reference(self, reference: str) -> Optional[int]:
        self.query_count += 1
        for link, _ in self._units.values():
            if link.matches(reference):
                return link.unit_id
        return None

    async def find_units_by_references(
        self, references: Sequence[str]
    ) -> list[DocumentUnitLink]:
        self.query_count += 1
        return [
            link
            for link, _ in self._units.values()
            if any(link.matches(ref) for ref in references)
        ]

    async def get_unit_owner(self, unit_id: int) -> Optional[int]:
        self.query_count += 1
        entry = self._units.get(unit_id)
        return entry[1] if entry else None

    async def get_provider_account_id(
        self, user_id: int, provider: str
    ) -> Optional[str]:
        self.query_count += 1
        return self._accounts.get((user_id, provider))

    async def get_user_id_by_provider_account(
        self, provider: str, provider_account_id: str
    ) -> Optional[int]:
        self.query_count += 1
        for (user_id, account_provider), account_id in self._accounts.items():
            if account_provider == provider and account_id == provider_account_id:
                return user_id
        return None
