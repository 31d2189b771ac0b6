"""The acting user, as handed over by the authentication layer."""

from dataclasses import dataclass
from enum import Enum


class ActorRole(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole = ActorRole.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @classmethod
    def admin(cls, actor_id: str = "admin") -> "Actor":
        return cls(id=actor_id, role=ActorRole.ADMIN)

    @classmethod
    def customer(cls, actor_id: str) -> "Actor":
        return cls(id=actor_id, role=ActorRole.CUSTOMER)
