"""
Authentication Routes
=====================
Register, login, logout, session check and profile endpoints.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status

from trialtracker.auth import AuthService
from trialtracker.auth.forms import LoginForm
from trialtracker.database.models import User
from trialtracker.validation import parse_form

from app.models.schemas import (
    AuthCheckResponse, AuthResponse, MessageResponse, UserEnvelope, UserResponse,
)
from app.core.security import (
    clear_session_cookie, get_auth_service, get_current_user, get_optional_user,
    get_session_token, require_anonymous, set_session_cookie,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_anonymous)])
def register(
    response: Response,
    payload: Dict[str, Any] = Body(...),
    auth: AuthService = Depends(get_auth_service),
):
    """Create a researcher or coordinator account and log it in."""
    user, token = auth.register(payload)
    set_session_cookie(response, token)
    return AuthResponse(
        message="User registered and logged in successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(require_anonymous)])
def login(
    response: Response,
    payload: Dict[str, Any] = Body(...),
    auth: AuthService = Depends(get_auth_service),
):
    """Log in through the user or admin portal."""
    form = parse_form(LoginForm, payload)
    user, token = auth.login(form.email_or_username, form.password, form.portal)
    set_session_cookie(response, token)
    return AuthResponse(message="Login successful", user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    request: Request,
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    """End the current session."""
    auth.logout(get_session_token(request))
    clear_session_cookie(response)
    logger.info(f"Logout: {current_user.username}")
    return MessageResponse(message="Logout successful")


@router.get("/user", response_model=UserEnvelope)
def get_user(current_user: User = Depends(get_current_user)):
    """Get current user."""
    return UserEnvelope(user=UserResponse.model_validate(current_user))


@router.get("/check", response_model=AuthCheckResponse)
def check(user: Optional[User] = Depends(get_optional_user)):
    """Report whether the request carries a live session."""
    return AuthCheckResponse(
        is_authenticated=user is not None,
        user=UserResponse.model_validate(user) if user is not None else None,
    )


@router.put("/profile", response_model=AuthResponse)
def update_profile(
    payload: Dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    """Update name and department."""
    user = auth.update_profile(current_user, payload)
    return AuthResponse(message="Profile updated successfully", user=UserResponse.model_validate(user))
