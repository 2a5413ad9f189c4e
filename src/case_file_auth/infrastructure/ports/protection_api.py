"""
Protection API Port.

Defines the interface to the identity provider's resource-protection
and token endpoints used by the case-file authorization core.
"""

from dataclasses import dataclass, field
from typing import Protocol, Optional, Any

from case_file_auth.domain.value_objects import CaseFileResource


@dataclass
class TokenExchangeResult:
    """
    Raw outcome of a UMA ticket-grant exchange.

    The access checker interprets the status; the client never decides
    whether access is granted.
    """

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def access_token(self) -> Optional[str]:
        token = self.body.get("access_token")
        return token if isinstance(token, str) and token else None


class ProtectionApiPort(Protocol):
    """Port for the identity provider's protection API."""

    async def get_service_token(self) -> str:
        """
        Obtain a service-account token (client-credentials grant).

        Cached until shortly before the provider's expiry.
        """
        ...

    async def find_resource_by_name(self, name: str) -> Optional[CaseFileResource]:
        """
        Look up a resource by exact name.

        Returns None when absent, and also when the registry answers with
        an unexpected status (logged).
        """
        ...

    async def get_resource(self, resource_id: str) -> Optional[CaseFileResource]:
        """Fetch a resource by id; None on 404."""
        ...

    async def create_resource(self, resource: CaseFileResource) -> CaseFileResource:
        """
        Register a resource and return it with its assigned id.

        Raises:
            ProtectionApiError: On any non-2xx response
        """
        ...

    async def exchange_uma_ticket(
        self,
        bearer_token: str,
        permissions: Optional[list[str]] = None,
    ) -> TokenExchangeResult:
        """
        Request a requesting party token on behalf of the user.

        Args:
            bearer_token: The requesting user's access token
            permissions: "{resourceId}#{scope}" strings; None requests
                all entitlements for the audience
        """
        ...
