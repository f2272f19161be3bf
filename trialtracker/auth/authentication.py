"""
TRIAL TRACKER - Authentication Service
=======================================
Login, registration, logout and session resolution against the user store.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from ..errors import AuthenticationFailed, Conflict, Forbidden, ValidationError
from ..database.enums import SELF_REGISTRATION_ROLES
from ..database.models import User, utcnow
from ..database.repositories import UserRepository
from ..validation import parse_form
from .forms import ProfileForm, RegistrationForm
from .jwt_handler import JWTHandler, get_jwt_handler
from .models import Portal, Role
from .password import PasswordHandler, PasswordPolicy, get_password_handler

logger = logging.getLogger(__name__)

# Same message for unknown user, inactive user and wrong password
GENERIC_LOGIN_FAILURE = "Invalid credentials"


class AuthService:
    """
    Authentication service.

    Features:
    - Login by email or username with portal enforcement
    - Self-registration restricted to non-admin roles
    - JWT session tokens with revocation on logout
    - Profile updates
    """

    def __init__(self, session: Session,
                 password_handler: Optional[PasswordHandler] = None,
                 jwt_handler: Optional[JWTHandler] = None):
        self.users = UserRepository(session)
        self.password_handler = password_handler or get_password_handler()
        self.jwt_handler = jwt_handler or get_jwt_handler()

    def authenticate(self, identifier: str, password: str) -> User:
        """
        Check credentials without creating a session.

        Raises:
            AuthenticationFailed: unknown user, inactive user, or wrong password
        """
        user = self.users.find_by_email_or_username(identifier)

        if user is None:
            logger.warning(f"Login attempt for non-existent user: {identifier}")
            raise AuthenticationFailed(GENERIC_LOGIN_FAILURE)

        if not user.is_active:
            logger.warning(f"Login attempt for inactive account: {user.username}")
            raise AuthenticationFailed(GENERIC_LOGIN_FAILURE)

        if not self.password_handler.verify_password(password, user.password_hash):
            logger.warning(f"Wrong password for user: {user.username}")
            raise AuthenticationFailed(GENERIC_LOGIN_FAILURE)

        return user

    def login(self, identifier: str, password: str, portal: Portal = Portal.USER) -> Tuple[User, str]:
        """
        Authenticate a user and open a session.

        Args:
            identifier: Email address or username
            password: Plain-text password
            portal: Entry point the user logged in through

        Returns:
            Tuple of (user, session_token)

        Raises:
            AuthenticationFailed: bad credentials
            Forbidden: role does not match the portal
        """
        user = self.authenticate(identifier, password)
        role = Role(user.role)

        if portal is Portal.USER and role is Role.ADMIN:
            logger.warning(f"Admin {user.username} tried the user portal")
            raise Forbidden("Admin accounts must log in via the admin portal.")
        if portal is Portal.ADMIN and role is not Role.ADMIN:
            logger.warning(f"Non-admin {user.username} tried the admin portal")
            raise Forbidden("Only admin accounts may use the admin portal.")

        user.last_login = utcnow()
        self.users.commit()

        token = self.jwt_handler.create_session_token(user.id, user.role)
        logger.info(f"Successful login: {user.username} via {portal.value} portal")
        return user, token

    def register(self, fields: Dict[str, Any]) -> Tuple[User, str]:
        """
        Create a self-registered account and open a session for it.

        Returns:
            Tuple of (user, session_token)

        Raises:
            Forbidden: a role other than researcher/coordinator was requested
            ValidationError: every field rule that failed
            Conflict: username or email already taken
        """
        requested_role = fields.get('role') if isinstance(fields, dict) else None
        if requested_role is not None and requested_role not in [r.value for r in SELF_REGISTRATION_ROLES]:
            logger.warning(f"Registration attempted with role {requested_role!r}")
            raise Forbidden("Admin registration is disabled. Contact system owner to provision admin.")

        form = self._validate_registration(fields)
        user = self._create_user(form, Role(form.role or Role.RESEARCHER.value))
        user.last_login = utcnow()
        self.users.commit()

        token = self.jwt_handler.create_session_token(user.id, user.role)
        logger.info(f"Registered user: {user.username} ({user.role})")
        return user, token

    def provision_user(self, fields: Dict[str, Any], role: Role = Role.ADMIN) -> User:
        """
        Create an account with any role, bypassing the self-registration
        restriction. Only reachable from operator tooling.

        Raises:
            ValidationError: every field rule that failed
            Conflict: username or email already taken
        """
        fields = {key: value for key, value in fields.items() if key != 'role'}
        form = self._validate_registration(fields)
        user = self._create_user(form, role)
        self.users.commit()
        logger.info(f"Provisioned user: {user.username} ({user.role})")
        return user

    def _validate_registration(self, fields: Dict[str, Any]) -> RegistrationForm:
        messages = []
        form = None
        try:
            form = parse_form(RegistrationForm, fields)
        except ValidationError as e:
            messages.extend(e.messages)

        password = fields.get('password') if isinstance(fields, dict) else None
        if isinstance(password, str):
            messages.extend(PasswordPolicy.violations(password))
        if messages:
            raise ValidationError(messages)
        return form

    def _create_user(self, form: RegistrationForm, role: Role) -> User:
        self.ensure_available(form.username, form.email)

        user = User(
            username=form.username,
            email=form.email,
            password_hash=self.password_handler.hash_password(form.password),
            first_name=form.first_name,
            last_name=form.last_name,
            department=form.department,
            role=role.value,
            is_active=True,
        )
        return self.users.create(user)

    def ensure_available(self, username: str, email: str) -> None:
        """
        Raises:
            Conflict: naming the field that is already taken
        """
        if self.users.get_by_email(email) is not None:
            raise Conflict("A user with this email already exists")
        if self.users.get_by_username(username) is not None:
            raise Conflict("A user with this username already exists")

    def logout(self, token: Optional[str]) -> bool:
        """
        Invalidate a session token. Safe to call more than once.

        Returns:
            True if a live session was closed
        """
        closed = self.jwt_handler.revoke_token(token)
        if closed:
            logger.info("User logged out, session revoked")
        return closed

    def resolve_session(self, token: Optional[str]) -> Optional[User]:
        """
        Get the active user a session token belongs to.

        Returns:
            The user, or None if the token is missing, invalid, revoked, or
            the account has been deactivated
        """
        is_valid, claims = self.jwt_handler.verify_token(token)
        if not is_valid:
            return None

        user = self.users.get_by_id(claims["sub"])
        if user is None or not user.is_active:
            return None
        return user

    def update_profile(self, user: User, fields: Dict[str, Any]) -> User:
        """
        Update optional profile fields.

        Raises:
            ValidationError: every field rule that failed
        """
        form = parse_form(ProfileForm, fields)
        changes = form.model_dump(exclude_unset=True)
        # Names cannot be cleared, only replaced
        changes = {
            key: value for key, value in changes.items()
            if value is not None or key == 'department'
        }

        self.users.update(user, changes)
        self.users.commit()
        logger.info(f"Profile updated for user: {user.username}")
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        return self.users.get_by_id(user_id)
