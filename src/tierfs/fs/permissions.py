"""Capabilities, tier flags, and the Permission value object.

Tiers are plain capability sets, evaluated by a flat precedence scan:
owner, then friend, then public.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import ValidationError

if TYPE_CHECKING:
    from .identity import Requester


class Capability(str, Enum):
    """A single grantable capability."""

    READ = "read"
    WRITE = "write"


NONE: frozenset[Capability] = frozenset()
READ: frozenset[Capability] = frozenset({Capability.READ})
READ_WRITE: frozenset[Capability] = frozenset({Capability.READ, Capability.WRITE})

_FLAG_CHARS = {"r": Capability.READ, "w": Capability.WRITE}


def parse_flags(flags: str | None) -> frozenset[Capability]:
    """Parse a stored tier flag string (``""``, ``"r"``, ``"rw"``)."""
    if not flags:
        return NONE
    caps: set[Capability] = set()
    for ch in flags:
        cap = _FLAG_CHARS.get(ch)
        if cap is None:
            raise ValidationError(f"Invalid permission flags: {flags!r}")
        caps.add(cap)
    return frozenset(caps)


def format_flags(caps: frozenset[Capability]) -> str:
    """Inverse of :func:`parse_flags`; always emits ``r`` before ``w``."""
    out = ""
    if Capability.READ in caps:
        out += "r"
    if Capability.WRITE in caps:
        out += "w"
    return out


@dataclass(frozen=True, slots=True)
class Permission:
    """The access-control record of one resource.

    Attributes:
        owner: Identity of the resource's creator.
        public: Capabilities granted to any requester, anonymous included.
        friend: Capabilities granted to requesters the owner trusts.
        private: Capabilities reserved for the owner.
    """

    owner: str
    public: frozenset[Capability] = NONE
    friend: frozenset[Capability] = NONE
    private: frozenset[Capability] = READ_WRITE

    @classmethod
    def from_flags(
        cls,
        owner: str,
        public: str = "",
        friend: str = "",
        private: str = "rw",
    ) -> Permission:
        return cls(
            owner=owner,
            public=parse_flags(public),
            friend=parse_flags(friend),
            private=parse_flags(private),
        )

    @classmethod
    def private_to(cls, owner: str) -> Permission:
        """Default record for a freshly uploaded resource."""
        return cls(owner=owner, public=NONE, friend=NONE, private=READ_WRITE)

    def is_owner(self, requester: Requester) -> bool:
        return not requester.is_anonymous and requester.identity == self.owner

    def allows(self, requester: Requester, capability: Capability) -> bool:
        """True if *requester* holds *capability* on this resource."""
        if self.is_owner(requester):
            return True
        if requester.is_friend_of(self.owner) and capability in self.friend:
            return True
        return capability in self.public
