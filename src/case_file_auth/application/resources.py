"""
Case-file resource lifecycle.

One protected resource per case file, named "case-file:{id}". Creation
is get-or-create by name; the provider's uniqueness-by-name is the only
guard against concurrent creators.
"""

import logging
from typing import Optional

from case_file_auth.domain.errors import (
    FeatureNotAvailableError,
    ProtectionApiError,
    ResourceCreationError,
    log_and_wrap,
)
from case_file_auth.domain.value_objects import (
    CaseFileResource,
    CaseFileScope,
    case_file_resource_name,
)
from case_file_auth.infrastructure.ports.protection_api import ProtectionApiPort


logger = logging.getLogger("case_file_auth.application.resources")


class CaseFileResourceManager:
    """
    Ensures each case file has its protected resource.

    Example usage:
        manager = CaseFileResourceManager(protection_client)
        resource = await manager.ensure_case_file_resource(42, "ext-42")
        resource.id  # provider-assigned id
    """

    def __init__(self, protection: ProtectionApiPort):
        self.protection = protection

    @staticmethod
    def scopes() -> list[str]:
        return CaseFileScope.all()

    async def find_case_file_resource(self, case_id: int) -> Optional[CaseFileResource]:
        return await self.protection.find_resource_by_name(case_file_resource_name(case_id))

    async def get_case_file_resource_id(self, case_id: int) -> Optional[str]:
        resource = await self.find_case_file_resource(case_id)
        return resource.id if resource else None

    async def ensure_case_file_resource(self, case_id: int, owner: str) -> CaseFileResource:
        """
        Return the case's resource, creating it if it doesn't exist.

        An existing resource is returned untouched; its ACL is never
        merged with the defaults.

        Raises:
            ValueError: If owner is empty or case_id is not a positive int
            ResourceCreationError: If creation fails and no resource
                appeared under the name in the meantime
        """
        if not owner:
            raise ValueError("Owner id is required to create a case file resource")
        name = case_file_resource_name(case_id)

        existing = await self.protection.find_resource_by_name(name)
        if existing is not None:
            return existing

        resource = CaseFileResource.for_case_file(case_id, owner)
        logger.info(
            f"Creating case file resource {name}",
            extra={"source": "ensureCaseFileResource", "case_id": case_id},
        )
        try:
            created = await self.protection.create_resource(resource)
        except ProtectionApiError as e:
            # Likely a concurrent creator won; re-read before failing
            recovered = await self.protection.find_resource_by_name(name)
            if recovered is not None:
                logger.warning(
                    f"Create of {name} failed but resource exists; using it",
                    extra={"source": "ensureCaseFileResource", "case_id": case_id},
                )
                return recovered
            raise log_and_wrap(
                e,
                source="ensureCaseFileResource",
                message="Failed to create case file resource",
                include={"case_id": case_id, "status_code": e.status_code},
                error_class=ResourceCreationError,
            )

        logger.info(
            f"Created case file resource {name}",
            extra={
                "source": "ensureCaseFileResource",
                "case_id": case_id,
                "resource_id": created.id,
            },
        )
        return created

    async def share_case_file(
        self, case_id: int, user_external_id: str, scope: CaseFileScope = CaseFileScope.READ
    ) -> CaseFileResource:
        raise FeatureNotAvailableError(
            "Sharing case files is not available yet",
            details={"case_id": case_id, "scope": CaseFileScope.parse(scope).value},
        )

    async def unshare_case_file(
        self, case_id: int, user_external_id: str, scope: Optional[CaseFileScope] = None
    ) -> CaseFileResource:
        raise FeatureNotAvailableError(
            "Unsharing case files is not available yet",
            details={"case_id": case_id},
        )
