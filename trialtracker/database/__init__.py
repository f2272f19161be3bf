"""
TRIAL TRACKER - Database Package
=================================
Relational storage for users and clinical trials.
"""

from .models import Base, User, ClinicalTrial, TrialNote
from .enums import TrialPhase, TrialStatus, UserRole
from .connection import DatabaseManager, get_db_manager, reset_db_manager
from .config import DatabaseConfig
from .repositories import UserRepository, TrialRepository

__all__ = [
    'Base',
    'User',
    'ClinicalTrial',
    'TrialNote',
    'TrialPhase',
    'TrialStatus',
    'UserRole',
    'DatabaseManager',
    'DatabaseConfig',
    'get_db_manager',
    'reset_db_manager',
    'UserRepository',
    'TrialRepository',
]
