"""
Domain value objects for case-file authorization.

Value objects are immutable and have no identity. `CaseFileResource`
mirrors the identity provider's resource representation; its wire
format (name, type, owner, scopes, attributes) is dictated by the
provider and must round-trip exactly.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


RESOURCE_TYPE = "case-file"
RESOURCE_NAME_PREFIX = "case-file:"
RESOURCE_NAME_PATTERN = re.compile(r"^case-file:(\d+)$")


class CaseFileScope(str, Enum):
    """Scopes a case-file resource can grant."""

    READ = "case-file:read"
    WRITE = "case-file:write"
    ADMIN = "case-file:admin"

    @classmethod
    def all(cls) -> list[str]:
        return [scope.value for scope in cls]

    @classmethod
    def parse(cls, value: "str | CaseFileScope") -> "CaseFileScope":
        """Accept either the full scope ("case-file:read") or its short name ("read")."""
        if isinstance(value, CaseFileScope):
            return value
        for scope in cls:
            if value in (scope.value, scope.name.lower()):
                return scope
        raise ValueError(f"Unknown case file scope: {value!r}")


# ═══════════════════════════════════════════════════════════════
# RESOURCE NAMING
# ═══════════════════════════════════════════════════════════════


def case_file_resource_name(case_id: int) -> str:
    """Deterministic resource name used as the lookup key before an id is known."""
    if isinstance(case_id, bool) or not isinstance(case_id, int):
        raise ValueError(f"Case file id must be an integer, got {case_id!r}")
    if case_id <= 0:
        raise ValueError(f"Case file id must be positive, got {case_id}")
    return f"{RESOURCE_NAME_PREFIX}{case_id}"


def parse_case_file_resource_name(name: Optional[str]) -> Optional[int]:
    """Return the case id encoded in a resource name, or None if it doesn't match."""
    if not name:
        return None
    match = RESOURCE_NAME_PATTERN.match(name)
    if match is None:
        return None
    return int(match.group(1))


# ═══════════════════════════════════════════════════════════════
# CASE FILE RESOURCE
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CaseFileAcl:
    """
    ACL attributes stored on the provider-side resource.

    Attribute values are string lists on the provider, so the case id is
    kept as a single-element list of its string form.
    """

    case_file_id: int
    readers: tuple[str, ...] = ()
    writers: tuple[str, ...] = ()
    admins: tuple[str, ...] = ()

    @classmethod
    def for_owner(cls, case_file_id: int, owner: str) -> "CaseFileAcl":
        """Default ACL: the owner has full self-access."""
        return cls(
            case_file_id=case_file_id,
            readers=(owner,),
            writers=(owner,),
            admins=(owner,),
        )

    def to_attributes(self) -> dict[str, list[str]]:
        return {
            "caseFileId": [str(self.case_file_id)],
            "readers": list(self.readers),
            "writers": list(self.writers),
            "admins": list(self.admins),
        }

    @classmethod
    def from_attributes(
        cls, attributes: Optional[dict[str, Any]], fallback_case_id: Optional[int] = None
    ) -> Optional["CaseFileAcl"]:
        attributes = attributes or {}
        raw_id = attributes.get("caseFileId") or []
        if isinstance(raw_id, (str, int)):
            raw_id = [raw_id]
        case_file_id: Optional[int] = None
        if raw_id:
            try:
                case_file_id = int(str(raw_id[0]).strip())
            except ValueError:
                case_file_id = None
        if case_file_id is None:
            case_file_id = fallback_case_id
        if case_file_id is None:
            return None
        return cls(
            case_file_id=case_file_id,
            readers=tuple(attributes.get("readers") or ()),
            writers=tuple(attributes.get("writers") or ()),
            admins=tuple(attributes.get("admins") or ()),
        )


@dataclass(frozen=True)
class CaseFileResource:
    """
    The identity provider's representation of a case file.

    `id` is assigned by the provider on creation and is None until then.
    """

    case_file_id: int
    owner: str
    id: Optional[str] = None
    name: str = ""
    type: str = RESOURCE_TYPE
    scopes: tuple[str, ...] = field(default_factory=lambda: tuple(CaseFileScope.all()))
    acl: Optional[CaseFileAcl] = None

    def __post_init__(self):
        if not self.owner:
            raise ValueError("CaseFileResource requires an owner id")
        expected_name = case_file_resource_name(self.case_file_id)
        if not self.name:
            object.__setattr__(self, "name", expected_name)
        elif self.name != expected_name:
            raise ValueError(
                f"Resource name {self.name!r} does not match case file id {self.case_file_id}"
            )
        if self.acl is None:
            object.__setattr__(
                self, "acl", CaseFileAcl.for_owner(self.case_file_id, self.owner)
            )

    @classmethod
    def for_case_file(cls, case_file_id: int, owner: str) -> "CaseFileResource":
        """Build the default (not yet created) resource for a case file."""
        return cls(case_file_id=case_file_id, owner=owner)

    def with_id(self, resource_id: str) -> "CaseFileResource":
        return CaseFileResource(
            case_file_id=self.case_file_id,
            owner=self.owner,
            id=resource_id,
            name=self.name,
            type=self.type,
            scopes=self.scopes,
            acl=self.acl,
        )

    def to_representation(self) -> dict[str, Any]:
        """Serialize to the provider's resource-set payload."""
        payload: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "owner": self.owner,
            "ownerManagedAccess": True,
            "resource_scopes": list(self.scopes),
            "attributes": self.acl.to_attributes(),
        }
        if self.id:
            payload["_id"] = self.id
        return payload

    @classmethod
    def from_representation(cls, data: dict[str, Any]) -> "CaseFileResource":
        """
        Parse a provider resource-set payload.

        `owner` may come back as a plain id or as {"id": ..., "name": ...};
        scopes may be plain names or {"name": ...} objects.
        """
        name = data.get("name") or ""
        attributes = data.get("attributes") or {}
        case_file_id = parse_case_file_resource_name(name)
        acl = CaseFileAcl.from_attributes(attributes, fallback_case_id=case_file_id)
        if case_file_id is None and acl is not None:
            case_file_id = acl.case_file_id
        if case_file_id is None:
            raise ValueError(f"Resource {name!r} is not a case file resource")

        owner = data.get("owner")
        if isinstance(owner, dict):
            owner = owner.get("id") or owner.get("name")
        if not owner and acl is not None and acl.admins:
            owner = acl.admins[0]

        raw_scopes = data.get("resource_scopes") or data.get("scopes") or []
        scopes = tuple(
            s.get("name") if isinstance(s, dict) else str(s) for s in raw_scopes
        )

        return cls(
            case_file_id=case_file_id,
            owner=owner or "",
            id=data.get("_id") or data.get("id"),
            name=name,
            type=data.get("type") or RESOURCE_TYPE,
            scopes=scopes or tuple(CaseFileScope.all()),
            acl=acl,
        )


# ═══════════════════════════════════════════════════════════════
# ACCESS GRANT (per-request)
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AccessGrant:
    """
    Permissions carried by one requesting party token.

    Lives only for the duration of one access check.
    """

    permissions: dict[str, list[str]] = field(default_factory=dict)
    resource_names: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Optional[dict[str, Any]]) -> Optional["AccessGrant"]:
        """
        Normalize the `authorization.permissions` claim.

        Returns None when the claim is missing or not a list; that is
        never treated as a grant.
        """
        if not isinstance(claims, dict):
            return None
        authorization = claims.get("authorization")
        if not isinstance(authorization, dict):
            return None
        raw = authorization.get("permissions")
        if not isinstance(raw, list):
            return None

        permissions: dict[str, list[str]] = {}
        names: dict[str, str] = {}
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            rsid = entry.get("rsid")
            if not rsid:
                continue
            scopes = entry.get("scopes") or []
            bucket = permissions.setdefault(rsid, [])
            for scope in scopes:
                if scope not in bucket:
                    bucket.append(scope)
            if entry.get("rsname"):
                names[rsid] = entry["rsname"]
        return cls(permissions=permissions, resource_names=names)

    @property
    def is_empty(self) -> bool:
        return not self.permissions

    def allows(self, resource_id: str, scope: Optional[str] = None) -> bool:
        if resource_id not in self.permissions:
            return False
        if scope is None:
            return True
        return scope in self.permissions[resource_id]


@dataclass(frozen=True)
class ResolvedCaseIdentity:
    """Transient result of resolving a case reference; recomputed per request."""

    case_id: int
    resource_id: Optional[str] = None
