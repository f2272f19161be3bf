"""
TRIAL TRACKER - Authentication Module
======================================
Cookie-session authentication with portal enforcement and owner-or-admin
authorization.
"""

from .authentication import AuthService
from .authorization import OwnershipPolicy, get_ownership_policy
from .jwt_handler import JWTHandler, get_jwt_handler, configure_jwt_handler
from .models import Principal, Portal, Role
from .password import PasswordHandler, PasswordPolicy, get_password_handler

__all__ = [
    'AuthService',
    'OwnershipPolicy',
    'get_ownership_policy',
    'JWTHandler',
    'get_jwt_handler',
    'configure_jwt_handler',
    'Principal',
    'Portal',
    'Role',
    'PasswordHandler',
    'PasswordPolicy',
    'get_password_handler',
]
