"""
TRIAL TRACKER - Database Enums
===============================
Enum types for consistent database values.
"""

from enum import Enum
from typing import List


class ValueEnum(str, Enum):
    """String enum whose members are stored by value."""

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


# =============================================================================
# TRIAL ENUMS
# =============================================================================

class TrialPhase(ValueEnum):
    """Clinical trial phases."""
    PRECLINICAL = "Preclinical"
    PHASE_I = "Phase I"
    PHASE_II = "Phase II"
    PHASE_III = "Phase III"
    PHASE_IV = "Phase IV"


class TrialStatus(ValueEnum):
    """Trial lifecycle status."""
    PLANNING = "Planning"
    ACTIVE = "Active"
    RECRUITING = "Recruiting"
    SUSPENDED = "Suspended"
    COMPLETED = "Completed"
    TERMINATED = "Terminated"


# Statuses after which a trial can no longer be overdue
CLOSED_STATUSES = (TrialStatus.COMPLETED, TrialStatus.TERMINATED)


# =============================================================================
# USER ENUMS
# =============================================================================

class UserRole(ValueEnum):
    """User role types."""
    ADMIN = "admin"
    RESEARCHER = "researcher"
    COORDINATOR = "coordinator"


# Roles a user may pick for themselves at registration
SELF_REGISTRATION_ROLES = (UserRole.RESEARCHER, UserRole.COORDINATOR)
