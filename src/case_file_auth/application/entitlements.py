"""
UMA entitlement requests.

Turns a ticket-grant exchange into an AccessGrant. Shared by the access
checker (single permission) and the account mapper (all entitlements).
"""

from dataclasses import dataclass
from typing import Optional

from case_file_auth.domain.value_objects import AccessGrant
from case_file_auth.infrastructure.adapters.tokens import decode_unverified_claims
from case_file_auth.infrastructure.ports.protection_api import ProtectionApiPort


@dataclass
class EntitlementResponse:
    """Status of the exchange and, on 200, the permissions carried by the RPT."""

    status_code: int
    grant: Optional[AccessGrant] = None
    access_token: Optional[str] = None
    subject: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def uma_permission(resource_id: str, scope: Optional[str] = None) -> str:
    """Format a permission as the provider expects: "{resourceId}#{scope}"."""
    return f"{resource_id}#{scope}" if scope else resource_id


async def fetch_entitlements(
    protection: ProtectionApiPort,
    bearer_token: str,
    permissions: Optional[list[str]] = None,
) -> EntitlementResponse:
    """
    Exchange the user's token and decode the resulting RPT.

    The RPT comes straight from the provider's token endpoint, so it is
    decoded without verification. The caller's own token is only
    forwarded, never decoded.

    Raises:
        ProtectionApiError: On transport failure
        InvalidTokenError: If a 200 response carries an undecodable RPT
    """
    result = await protection.exchange_uma_ticket(bearer_token, permissions)
    if result.status_code != 200:
        return EntitlementResponse(status_code=result.status_code)

    rpt = result.access_token
    if rpt is None:
        return EntitlementResponse(status_code=200)

    claims = decode_unverified_claims(rpt)
    return EntitlementResponse(
        status_code=200,
        grant=AccessGrant.from_claims(claims),
        access_token=rpt,
        subject=claims.get("sub"),
    )
