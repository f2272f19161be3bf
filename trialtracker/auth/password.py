"""
TRIAL TRACKER - Password Handler
=================================
Password hashing with bcrypt and the registration password policy.
"""

import os
import re
import logging
from typing import List, Optional

import bcrypt

logger = logging.getLogger(__name__)


class PasswordPolicy:
    """
    Password policy for self-registered accounts.

    Requirements:
    - Minimum 6 characters
    - At least 1 lowercase letter
    - At least 1 uppercase letter
    - At least 1 digit
    """

    MIN_LENGTH = 6
    # bcrypt only looks at the first 72 bytes
    MAX_BYTES = 72

    @classmethod
    def violations(cls, password: str) -> List[str]:
        """Every rule the password breaks (empty list when it passes)."""
        violations = []

        if len(password) < cls.MIN_LENGTH:
            violations.append(f"Password must be at least {cls.MIN_LENGTH} characters long")

        if len(password.encode("utf-8")) > cls.MAX_BYTES:
            violations.append(f"Password cannot exceed {cls.MAX_BYTES} bytes")

        if not (re.search(r'[a-z]', password) and re.search(r'[A-Z]', password) and re.search(r'\d', password)):
            violations.append(
                "Password must contain at least one lowercase letter, one uppercase letter, and one number"
            )

        return violations


class PasswordHandler:
    """bcrypt hashing for stored user credentials."""

    def __init__(self, rounds: Optional[int] = None):
        # bcrypt work factor
        self.rounds = rounds or int(os.getenv("BCRYPT_ROUNDS", "12"))

    def hash_password(self, password: str) -> str:
        """Salted bcrypt hash, returned as text for the password_hash column."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    def verify_password(self, password: str, hashed: str) -> bool:
        """Check a login attempt against a stored hash."""
        try:
            return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
        except ValueError as e:
            # Malformed stored hash
            logger.error(f"Password verification error: {e}")
            return False


# Singleton instance
_password_handler: Optional[PasswordHandler] = None


def get_password_handler() -> PasswordHandler:
    """Shared handler; BCRYPT_ROUNDS is read once."""
    global _password_handler
    if _password_handler is None:
        _password_handler = PasswordHandler()
    return _password_handler
