"""
TRIAL TRACKER - Role & Identity Models
=======================================
Caller identity passed explicitly into every service operation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..database.enums import UserRole as Role
from ..database.models import User


class Portal(str, Enum):
    """Login entry points."""
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller: who they are and what role they hold."""
    user_id: str
    role: Role
    username: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> 'Principal':
        return cls(user_id=user.id, role=Role(user.role), username=user.username)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


__all__ = ['Role', 'Portal', 'Principal']
