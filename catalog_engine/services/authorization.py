# catalog_engine/services/authorization.py
import uuid
from dataclasses import dataclass, field
from typing import Iterable

GUEST_ROLE = "guest"


@dataclass(frozen=True)
class Actor:
    """
    Whoever is calling: an id and an application role.

    Built by the API layer (see core/auth.py). Services never invent one.
    """

    id: uuid.UUID
    role: str = GUEST_ROLE


def guest_actor() -> Actor:
    """
    Least-privileged actor with a synthesized id, for unauthenticated calls.
    """
    return Actor(id=uuid.uuid4(), role=GUEST_ROLE)


class Authorization:
    """
    Capability check consulted by the variant router and the moderation
    queue. Subclass to plug in a richer role model.
    """

    def can_apply_directly(self, actor: Actor) -> bool:
        raise NotImplementedError


@dataclass
class RoleAuthorization(Authorization):
    """
    Grants direct mutation to a fixed set of roles.
    """

    privileged_roles: frozenset[str] = field(default_factory=lambda: frozenset({"admin"}))

    @classmethod
    def from_roles(cls, roles: Iterable[str]) -> "RoleAuthorization":
        return cls(privileged_roles=frozenset(r.strip().lower() for r in roles))

    def can_apply_directly(self, actor: Actor) -> bool:
        return (actor.role or "").lower() in self.privileged_roles
