"""
TRIAL TRACKER - Ownership Authorization
========================================
Owner-or-admin access control over user-owned resources.

Decisions are pure functions of the caller's Principal and the resource's
owner id, so they can be tested without any session machinery.
"""

import logging
from typing import Optional

from ..errors import Forbidden
from .models import Principal, Role

logger = logging.getLogger(__name__)


class OwnershipPolicy:
    """
    Owner-or-admin authorizer.

    Provides:
    - Access checks for read, update, delete of a single resource
    - The implicit owner filter applied to list queries
    """

    def can_access(self, principal: Principal, owner_id: Optional[str]) -> bool:
        """
        Check whether the caller may act on a resource.

        Args:
            principal: The authenticated caller
            owner_id: The user id the resource belongs to

        Returns:
            True if permitted
        """
        if principal.role is Role.ADMIN:
            return True
        elif principal.role is Role.RESEARCHER or principal.role is Role.COORDINATOR:
            return owner_id is not None and owner_id == principal.user_id
        raise ValueError(f"Unhandled role: {principal.role!r}")

    def enforce(self, principal: Principal, owner_id: Optional[str],
                message: str = "You do not have permission to access this resource") -> None:
        """
        Raise Forbidden unless the caller may act on the resource.

        Raises:
            Forbidden: caller is neither admin nor owner
        """
        if not self.can_access(principal, owner_id):
            logger.warning(f"Access denied: user={principal.user_id} role={principal.role.value} owner={owner_id}")
            raise Forbidden(message)

    def list_scope(self, principal: Principal) -> Optional[str]:
        """
        Owner id that list queries must be restricted to.

        Returns:
            None for admins (no restriction), the caller's own id otherwise
        """
        if principal.role is Role.ADMIN:
            return None
        elif principal.role is Role.RESEARCHER or principal.role is Role.COORDINATOR:
            return principal.user_id
        raise ValueError(f"Unhandled role: {principal.role!r}")


# Singleton instance
_policy: Optional[OwnershipPolicy] = None


def get_ownership_policy() -> OwnershipPolicy:
    """Get singleton ownership policy."""
    global _policy
    if _policy is None:
        _policy = OwnershipPolicy()
    return _policy
