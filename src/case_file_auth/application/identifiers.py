"""
Case-file identifier resolution.

Maps the references route handlers receive (numeric ids, numeric
strings, e-mail or document-property UUIDs) to a local document-unit id.

Single resolution soft-fails to None on store errors; batch resolution
lets them propagate so batch callers can handle failure as a whole.
"""

import logging
import re
from typing import Any, Iterable, Mapping, Optional

from case_file_auth.domain.errors import IdentifierResolutionError, log_and_wrap
from case_file_auth.infrastructure.ports.store import CaseFileStorePort


logger = logging.getLogger("case_file_auth.application.identifiers")

UUID_V4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
NUMERIC_PATTERN = re.compile(r"^[+-]?\d+$")


def is_uuid_v4(value: Any) -> bool:
    return isinstance(value, str) and UUID_V4_PATTERN.match(value.strip()) is not None


def parse_numeric_id(value: Any) -> Optional[int]:
    """
    Return the integer an input stands for, without any lookup.

    Integers come back unchanged (zero and negatives included). Floats
    pass through as the same int when integral (3.0 → 3); fractional,
    NaN and infinite floats are not ids. Strings must be an integer in
    full after trimming: "0123" → 123, but "12ab" → None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        candidate = value.strip()
        if NUMERIC_PATTERN.match(candidate):
            return int(candidate)
    return None


def _request_value(request: Any) -> Any:
    if not isinstance(request, Mapping):
        return None
    if "case_file_id" in request:
        return request["case_file_id"]
    return request.get("caseFileId")


class CaseFileIdResolver:
    """
    Resolves case-file references against the store.

    Example usage:
        resolver = CaseFileIdResolver(store)
        unit_id = await resolver.resolve_case_file_id("0b4c...-uuid")
        ids = await resolver.resolve_case_file_id_batch(
            [{"case_file_id": 1}, {"case_file_id": "0b4c...-uuid"}]
        )
    """

    def __init__(self, store: CaseFileStorePort):
        self.store = store

    async def resolve_case_file_id(self, value: Any) -> Optional[int]:
        """
        Resolve one reference.

        Returns:
            The unit id, or None for unresolvable input. Never raises.
        """
        numeric = parse_numeric_id(value)
        if numeric is not None:
            return numeric
        if not is_uuid_v4(value):
            return None

        reference = value.strip()
        try:
            return await self.store.find_unit_id_by_reference(reference)
        except Exception as e:
            logger.error(
                f"resolveCaseFileId: Error querying for case file ID - validate document ID format: {e}",
                exc_info=e,
                extra={"source": "resolveCaseFileId", "ctx_document_id": reference},
            )
            return None

    async def resolve_case_file_id_batch(
        self, requests: Iterable[Mapping[str, Any]]
    ) -> list[dict[str, int]]:
        """
        Resolve many references with at most one store round trip.

        Numeric entries come first (input order), then UUID entries
        (input order). Unresolvable entries are dropped.

        Raises:
            IdentifierResolutionError: If the store lookup fails
        """
        resolved: list[dict[str, int]] = []
        references: list[str] = []

        for request in requests:
            value = _request_value(request)
            numeric = parse_numeric_id(value)
            if numeric is not None:
                resolved.append({"case_file_id": numeric})
            elif is_uuid_v4(value):
                references.append(value.strip())
            else:
                logger.debug(f"Dropping unresolvable case file reference: {value!r}")

        if not references:
            return resolved

        unique = list(dict.fromkeys(references))
        try:
            links = await self.store.find_units_by_references(unique)
        except Exception as e:
            raise log_and_wrap(
                e,
                source="resolveCaseFileIdBatch",
                message="Error resolving case file IDs in batch",
                include={"references": unique},
                error_class=IdentifierResolutionError,
            )

        for reference in references:
            unit_id = next(
                (link.unit_id for link in links if link.matches(reference)), None
            )
            if unit_id is None:
                logger.debug(f"No document unit linked to {reference}")
                continue
            resolved.append({"case_file_id": unit_id})

        return resolved
