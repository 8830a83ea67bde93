"""Requester — the identity an operation runs as."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exceptions import AuthenticationRequiredError

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class Requester:
    """Either anonymous or an authenticated identity.

    Attributes:
        identity: Authenticated user name, ``None`` when anonymous.
        friends: Owners that trust this requester.  A resource's friend tier
            applies when its owner is in this set.
    """

    identity: str | None = None
    friends: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> Requester:
        return cls()

    @classmethod
    def authenticated(cls, identity: str, friends: Iterable[str] = ()) -> Requester:
        if not identity:
            raise AuthenticationRequiredError("identity must be a non-empty string")
        return cls(identity=identity, friends=frozenset(friends))

    @property
    def is_anonymous(self) -> bool:
        return self.identity is None

    def is_friend_of(self, owner: str) -> bool:
        return not self.is_anonymous and owner in self.friends

    def require_identity(self, message: str) -> str:
        """Return the identity or raise ``AuthenticationRequiredError(message)``."""
        if self.identity is None:
            raise AuthenticationRequiredError(message)
        return self.identity

    def __repr__(self) -> str:
        if self.identity is None:
            return "Requester(anonymous)"
        return f"Requester({self.identity!r})"
