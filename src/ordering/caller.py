"""Identity of the caller, passed explicitly into every operation."""

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str = Role.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def can_access(self, owner_id) -> bool:
        """Owners and admins may read a resource."""
        return self.is_admin or str(owner_id) == str(self.user_id)
