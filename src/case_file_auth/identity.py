"""
Identity protocols and implementations.

The host application fulfils the Identity contract; this package only
needs the session user's local case id and identity-provider subject.
"""

from typing import Protocol, Optional, runtime_checkable
from dataclasses import dataclass


@runtime_checkable
class Identity(Protocol):
    """Protocol for the authenticated session user."""

    @property
    def user_id(self) -> Optional[int]:
        """Local case id owned by the user."""
        ...

    @property
    def subject(self) -> Optional[str]:
        """Identity-provider user id (the token `sub`)."""
        ...

    @property
    def is_authenticated(self) -> bool:
        ...


class AnonymousIdentity:
    """Default identity for unauthenticated requests."""

    user_id = None
    subject = None
    username = "anonymous"
    is_authenticated = False


@dataclass
class AuthenticatedIdentity:
    """Concrete identity for authenticated users."""

    user_id: Optional[int]
    subject: Optional[str] = None
    username: str = ""
    is_authenticated: bool = True
