"""
TRIAL TRACKER - Account Forms
==============================
Inbound payloads for login, registration and profile updates.
"""

import re
from typing import Literal, Optional

from pydantic import ConfigDict, Field, field_validator

from ..validation import FormModel
from .models import Portal

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
USERNAME_PATTERN = r'^[a-zA-Z0-9_]+$'


class LoginForm(FormModel):
    # Passwords are taken verbatim
    model_config = ConfigDict(str_strip_whitespace=False)

    email_or_username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    portal: Portal = Portal.USER

    @field_validator('email_or_username', mode='before')
    @classmethod
    def strip_identifier(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator('portal', mode='before')
    @classmethod
    def lowercase_portal(cls, value):
        return value.lower() if isinstance(value, str) else value


class RegistrationForm(FormModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: str = Field(..., max_length=254)
    # Strength rules are applied by PasswordPolicy so each one is reported
    password: str
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    role: Optional[Literal['researcher', 'coordinator']] = None
    department: Optional[str] = Field(None, max_length=100)

    @field_validator('username', 'email', 'first_name', 'last_name', 'department', mode='before')
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please provide a valid email address")
        return value.lower()


class ProfileForm(FormModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    department: Optional[str] = Field(None, max_length=100)
