"""
Security Module - Cookie Sessions & Request Identity
"""
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from trialtracker.auth import AuthService, JWTHandler, Principal, configure_jwt_handler
from trialtracker.database.models import User
from trialtracker.errors import AlreadyAuthenticated, NotAuthenticated

from app.config import settings
from app.services.database import get_db

_jwt_handler: Optional[JWTHandler] = None


def get_session_handler() -> JWTHandler:
    """Session token handler built from application settings."""
    global _jwt_handler
    if _jwt_handler is None:
        _jwt_handler = configure_jwt_handler(
            settings.SECRET_KEY,
            settings.ALGORITHM,
            timedelta(hours=settings.SESSION_EXPIRE_HOURS),
        )
    return _jwt_handler


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db, jwt_handler=get_session_handler())


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_optional_user(
    token: Optional[str] = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    """The logged-in user, or None for anonymous requests."""
    return auth.resolve_session(token)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Require a live session."""
    if user is None:
        raise NotAuthenticated()
    return user


def get_principal(user: User = Depends(get_current_user)) -> Principal:
    """Caller identity handed to the trial operations."""
    return Principal.from_user(user)


def require_anonymous(user: Optional[User] = Depends(get_optional_user)) -> None:
    """Reject login/registration while a session is already open."""
    if user is not None:
        raise AlreadyAuthenticated()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_HOURS * 3600,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
