"""
Case File Store Port.

Defines the relational lookups the authorization core needs: linking
e-mail / document-property UUIDs to document units, document units to
their owning case, and cases to identity-provider accounts.
"""

from dataclasses import dataclass
from typing import Protocol, Optional, Sequence


@dataclass(frozen=True)
class DocumentUnitLink:
    """A document unit and the UUIDs it can be referenced by."""

    unit_id: int
    email_id: Optional[str] = None
    document_property_id: Optional[str] = None

    def matches(self, reference: str) -> bool:
        if not reference:
            return False
        reference = reference.lower()
        return reference in (
            (self.email_id or "").lower(),
            (self.document_property_id or "").lower(),
        )


class CaseFileStorePort(Protocol):
    """Port for the relational store backing case-file lookups."""

    async def find_unit_id_by_reference(self, reference: str) -> Optional[int]:
        """
        Find the document unit linked to a UUID.

        Matches either the e-mail linkage column or the document-property
        linkage column.

        Returns:
            The unit id, or None if nothing is linked
        """
        ...

    async def find_units_by_references(
        self, references: Sequence[str]
    ) -> list[DocumentUnitLink]:
        """
        Find all document units linked to any of the given UUIDs.

        Must be a single round trip regardless of how many references are
        passed.
        """
        ...

    async def get_unit_owner(self, unit_id: int) -> Optional[int]:
        """Return the case (user) id owning a document unit, or None."""
        ...

    async def get_provider_account_id(
        self, user_id: int, provider: str
    ) -> Optional[str]:
        """Return the identity-provider account id linked to a case id."""
        ...

    async def get_user_id_by_provider_account(
        self, provider: str, provider_account_id: str
    ) -> Optional[int]:
        """Reverse of `get_provider_account_id`."""
        ...
