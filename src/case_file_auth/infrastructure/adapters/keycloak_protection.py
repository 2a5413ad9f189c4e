"""
Keycloak Protection API Adapter.

Implements ProtectionApiPort against Keycloak's UMA endpoints:
- Service-account tokens via python-keycloak (client-credentials grant)
- Resource registration (`/authz/protection/resource_set`) via httpx
- UMA ticket-grant exchanges on behalf of the requesting user via httpx

Every outbound call carries a bounded timeout.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Any, Awaitable, Callable
from urllib.parse import urlsplit

import httpx
from keycloak import KeycloakOpenID
from keycloak.exceptions import KeycloakError

from case_file_auth.domain.errors import ProtectionApiError
from case_file_auth.domain.value_objects import CaseFileResource
from case_file_auth.infrastructure.ports.protection_api import (
    ProtectionApiPort,
    TokenExchangeResult,
)


logger = logging.getLogger("case_file_auth.infrastructure.adapters.keycloak")

UMA_TICKET_GRANT = "urn:ietf:params:oauth:grant-type:uma-ticket"


# ═══════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════


@dataclass
class KeycloakProtectionConfig:
    """Configuration for the Keycloak protection adapter."""

    server_url: str  # e.g., "https://keycloak.example.com"
    realm: str
    client_id: str
    client_secret: Optional[str] = None

    # Client whose authorization services protect case files (UMA audience)
    audience: Optional[str] = None

    # Connection options
    verify: bool = True
    timeout: float = 10.0  # seconds, per outbound request

    # Service token is treated as expired this many seconds early
    token_expiry_skew: int = 30

    # Provider name used in the accounts join table
    provider_name: str = "keycloak"

    @classmethod
    def from_issuer(cls, issuer: str, client_id: str, **kwargs: Any) -> "KeycloakProtectionConfig":
        """
        Build config from a realm issuer URL.

        "https://kc.example.com/realms/test" → server_url "https://kc.example.com",
        realm "test".
        """
        parts = urlsplit(issuer.rstrip("/"))
        path = parts.path
        marker = "/realms/"
        if marker not in path:
            raise ValueError(f"Issuer URL does not contain a realm: {issuer!r}")
        prefix, realm = path.rsplit(marker, 1)
        server_url = f"{parts.scheme}://{parts.netloc}{prefix}"
        return cls(server_url=server_url, realm=realm, client_id=client_id, **kwargs)

    @property
    def issuer(self) -> str:
        return f"{self.server_url.rstrip('/')}/realms/{self.realm}"

    @property
    def token_endpoint(self) -> str:
        return f"{self.issuer}/protocol/openid-connect/token"

    @property
    def resource_set_endpoint(self) -> str:
        return f"{self.issuer}/authz/protection/resource_set"

    @property
    def uma_audience(self) -> str:
        return self.audience or self.client_id


# ═══════════════════════════════════════════════════════════════
# SERVICE TOKEN CACHE
# ═══════════════════════════════════════════════════════════════


class ServiceTokenCache:
    """
    TTL-aware, single-flight cache for the service-account token.

    The first caller after expiry starts the fetch; concurrent callers
    await the same in-flight task. A failed fetch is not cached, so the
    next caller tries again.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[tuple[str, int]]],
        skew: int = 30,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self._skew = skew
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._inflight: Optional[asyncio.Task] = None

    @property
    def is_valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at

    async def get(self) -> str:
        if self.is_valid:
            return self._token

        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._refresh())
            self._inflight = task
        # Shield so one cancelled waiter doesn't cancel the fetch for the others
        return await asyncio.shield(task)

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    def invalidate_if(self, token: str) -> bool:
        """
        Drop the cached token only if it is still `token`.

        A caller holding a rejected token must not discard a newer one
        another caller already fetched.
        """
        if self._token != token:
            return False
        self.invalidate()
        return True

    async def _refresh(self) -> str:
        try:
            token, expires_in = await self._fetch()
            self._token = token
            self._expires_at = self._clock() + max(int(expires_in) - self._skew, 0)
            logger.debug(f"Service token refreshed, valid for {expires_in}s")
            return token
        finally:
            self._inflight = None


# ═══════════════════════════════════════════════════════════════
# PROTECTION CLIENT
# ═══════════════════════════════════════════════════════════════


class KeycloakProtectionClient(ProtectionApiPort):
    """
    Keycloak implementation of ProtectionApiPort.

    Construct one instance per application and share it; the service
    token cache lives on the instance.

    Example usage:
        config = KeycloakProtectionConfig(
            server_url="https://keycloak.example.com",
            realm="my-realm",
            client_id="my-app",
            client_secret="secret",
        )
        async with KeycloakProtectionClient(config) as client:
            resource = await client.find_resource_by_name("case-file:42")
    """

    def __init__(
        self,
        config: KeycloakProtectionConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self._keycloak = KeycloakOpenID(
            server_url=config.server_url,
            realm_name=config.realm,
            client_id=config.client_id,
            client_secret_key=config.client_secret,
            verify=config.verify,
            timeout=config.timeout,
        )
        self._http = http_client
        self._owns_http = http_client is None
        self.token_cache = ServiceTokenCache(
            self._fetch_service_token, skew=config.token_expiry_skew
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self.config.timeout, verify=self.config.verify
            )
            self._owns_http = True
        return self._http

    # ═══════════════════════════════════════════════════════════════
    # SERVICE TOKEN
    # ═══════════════════════════════════════════════════════════════

    async def get_service_token(self) -> str:
        """
        Get a service-account token for the protection API.

        Raises:
            ProtectionApiError: If the token endpoint rejects the client
        """
        return await self.token_cache.get()

    async def _fetch_service_token(self) -> tuple[str, int]:
        try:
            token_data = await self._keycloak.a_token(grant_type="client_credentials")
        except KeycloakError as e:
            logger.error(
                f"Service token request failed: {e}",
                extra={"source": "getServiceToken", "status_code": e.response_code},
            )
            raise ProtectionApiError(
                f"Failed to obtain service token: {e}",
                source="getServiceToken",
                status_code=e.response_code,
            ) from e

        access_token = (token_data or {}).get("access_token")
        if not access_token:
            raise ProtectionApiError(
                "Token endpoint returned no access_token",
                source="getServiceToken",
            )
        return access_token, int(token_data.get("expires_in", 300))

    async def _protected_request(
        self, method: str, url: str, *, source: str, **kwargs: Any
    ) -> httpx.Response:
        """
        Call the protection API with the service token.

        A 401 invalidates the rejected token (if still cached) and retries once.
        """
        response: Optional[httpx.Response] = None
        rejected: Optional[str] = None
        for _ in range(2):
            if rejected is not None:
                self.token_cache.invalidate_if(rejected)
            token = await self.token_cache.get()
            try:
                response = await self._client().request(
                    method,
                    url,
                    headers={"Authorization": f"Bearer {token}"},
                    **kwargs,
                )
            except httpx.HTTPError as e:
                raise ProtectionApiError(
                    f"{source}: request to protection API failed: {e}",
                    source=source,
                ) from e
            if response.status_code != 401:
                return response
            rejected = token
            logger.debug(f"{source}: service token rejected, retrying with a fresh one")
        return response

    # ═══════════════════════════════════════════════════════════════
    # RESOURCE SET
    # ═══════════════════════════════════════════════════════════════

    async def find_resource_by_name(self, name: str) -> Optional[CaseFileResource]:
        """
        Look up a resource by exact name.

        Registry errors degrade to None (logged); callers decide whether
        absence is fatal.
        """
        try:
            response = await self._protected_request(
                "GET",
                self.config.resource_set_endpoint,
                source="findResourceByName",
                params={"name": name, "exactName": "true"},
            )
        except ProtectionApiError as e:
            logger.warning(
                f"Resource lookup for {name} failed: {e.message}",
                extra={"source": "findResourceByName", "resource_name": name},
            )
            return None

        if response.status_code == 404:
            logger.debug(f"Resource {name} not found")
            return None
        if not response.is_success:
            logger.warning(
                f"Unexpected status {response.status_code} looking up resource {name}",
                extra={
                    "source": "findResourceByName",
                    "resource_name": name,
                    "status_code": response.status_code,
                },
            )
            return None

        ids = _json_or_none(response)
        if not isinstance(ids, list) or not ids:
            logger.debug(f"Resource {name} not found")
            return None

        try:
            return await self.get_resource(str(ids[0]))
        except ProtectionApiError as e:
            logger.warning(
                f"Resource {name} listed but could not be read: {e.message}",
                extra={"source": "findResourceByName", "resource_name": name},
            )
            return None

    async def get_resource(self, resource_id: str) -> Optional[CaseFileResource]:
        """
        Fetch a resource by id.

        Returns:
            The resource, or None on 404

        Raises:
            ProtectionApiError: On any other non-2xx or an unparseable body
        """
        response = await self._protected_request(
            "GET",
            f"{self.config.resource_set_endpoint}/{resource_id}",
            source="getResource",
        )
        if response.status_code == 404:
            return None
        if not response.is_success:
            logger.error(
                f"Failed to get resource {resource_id}: {response.status_code}",
                extra={
                    "source": "getResource",
                    "resource_id": resource_id,
                    "status_code": response.status_code,
                },
            )
            raise ProtectionApiError(
                f"Failed to get resource details: {response.reason_phrase}",
                source="getResource",
                status_code=response.status_code,
                details={"resource_id": resource_id},
            )

        data = _json_or_none(response)
        if not isinstance(data, dict):
            raise ProtectionApiError(
                "Resource details response is not an object",
                source="getResource",
                status_code=response.status_code,
                details={"resource_id": resource_id},
            )
        try:
            return CaseFileResource.from_representation(data)
        except ValueError as e:
            raise ProtectionApiError(
                f"Resource {resource_id} is not a case file resource: {e}",
                source="getResource",
                details={"resource_id": resource_id},
            ) from e

    async def create_resource(self, resource: CaseFileResource) -> CaseFileResource:
        """
        Register a resource with the provider.

        Raises:
            ProtectionApiError: On transport failure or any non-2xx response
        """
        response = await self._protected_request(
            "POST",
            self.config.resource_set_endpoint,
            source="createResource",
            json=resource.to_representation(),
        )
        if not response.is_success:
            logger.error(
                f"Failed to create resource {resource.name}: {response.status_code}",
                extra={
                    "source": "createResource",
                    "resource_name": resource.name,
                    "status_code": response.status_code,
                },
            )
            raise ProtectionApiError(
                f"Failed to create resource: {response.reason_phrase}",
                source="createResource",
                status_code=response.status_code,
                details={"resource_name": resource.name, "body": response.text[:500]},
            )

        data = _json_or_none(response)
        resource_id = data.get("_id") if isinstance(data, dict) else None
        if not resource_id:
            raise ProtectionApiError(
                "Created resource has no id",
                source="createResource",
                status_code=response.status_code,
                details={"resource_name": resource.name},
            )
        logger.info(
            f"Created resource {resource.name} ({resource_id})",
            extra={"source": "createResource", "resource_id": resource_id},
        )
        return resource.with_id(resource_id)

    # ═══════════════════════════════════════════════════════════════
    # UMA TICKET EXCHANGE
    # ═══════════════════════════════════════════════════════════════

    async def exchange_uma_ticket(
        self,
        bearer_token: str,
        permissions: Optional[list[str]] = None,
    ) -> TokenExchangeResult:
        """
        Exchange the user's token for a requesting party token.

        Authenticated as the requesting user, never with the service token.

        Raises:
            ProtectionApiError: On transport failure or timeout
        """
        form: dict[str, Any] = {
            "grant_type": UMA_TICKET_GRANT,
            "audience": self.config.uma_audience,
        }
        if permissions:
            form["permission"] = list(permissions)

        try:
            response = await self._client().post(
                self.config.token_endpoint,
                data=form,
                headers={"Authorization": f"Bearer {bearer_token}"},
            )
        except httpx.HTTPError as e:
            raise ProtectionApiError(
                f"UMA ticket exchange failed: {e}",
                source="umaTicketExchange",
            ) from e

        body = _json_or_none(response) if response.status_code == 200 else None
        return TokenExchangeResult(
            status_code=response.status_code,
            body=body if isinstance(body, dict) else {},
        )


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
