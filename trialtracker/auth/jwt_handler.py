"""
TRIAL TRACKER - Session Token Handler
======================================
Signed JWT session tokens carried in the session cookie.
"""

import os
import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, Tuple

import jwt

logger = logging.getLogger(__name__)


class JWTHandler:
    """
    Issues and checks the tokens stored in the session cookie.

    Each token names the user (sub), the role held at login and a random
    jti. Logout adds the jti to an in-process deny list.
    """

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None,
                 session_expiry: Optional[timedelta] = None):
        # Secret key from argument, environment, or a per-process random default
        self.secret_key = secret_key or os.getenv("JWT_SECRET_KEY") or self._generate_default_key()
        self.algorithm = algorithm or os.getenv("JWT_ALGORITHM", "HS256")

        self.session_expiry = session_expiry or timedelta(
            hours=int(os.getenv("SESSION_EXPIRE_HOURS", "24"))
        )

        # Revoked token id -> expiry timestamp (should use Redis when running several workers)
        self._revoked: Dict[str, float] = {}

        logger.info("JWTHandler initialized")

    def _generate_default_key(self) -> str:
        # Sessions will not survive a restart with this key
        key = f"trial-tracker-{uuid.uuid4().hex}"
        logger.warning("Using auto-generated JWT secret. Set SECRET_KEY for production!")
        return key

    def create_session_token(self, user_id: str, role: str) -> str:
        """
        Create a session token.

        Args:
            user_id: User's unique ID
            role: User's role at login time

        Returns:
            Encoded JWT token string
        """
        now = datetime.now(timezone.utc)

        payload = {
            "sub": str(user_id),
            "role": role,
            "type": "session",
            "iat": now,
            "exp": now + self.session_expiry,
            "jti": uuid.uuid4().hex,
        }

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """
        Verify a session token and return its claims.

        Returns:
            Tuple of (is_valid, claims_dict)
        """
        if not token:
            return False, None

        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            return False, None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid session token: {e}")
            return False, None

        if claims.get("type") != "session" or not claims.get("sub"):
            return False, None

        self._prune_revoked()
        if claims.get("jti") in self._revoked:
            logger.debug("Session token was revoked")
            return False, None

        return True, claims

    def _prune_revoked(self) -> None:
        """Forget revoked ids whose tokens have expired anyway."""
        now = datetime.now(timezone.utc).timestamp()
        for jti in [jti for jti, exp in self._revoked.items() if exp <= now]:
            del self._revoked[jti]

    def revoke_token(self, token: Optional[str]) -> bool:
        """
        Revoke a session token.

        Returns:
            True if a valid token was revoked, False if there was nothing to revoke
        """
        is_valid, claims = self.verify_token(token)
        if not is_valid:
            return False
        self._revoked[claims["jti"]] = float(claims["exp"])
        logger.info("Session token revoked")
        return True


# Singleton instance
_jwt_handler: Optional[JWTHandler] = None


def get_jwt_handler() -> JWTHandler:
    """Process-wide handler configured from the environment."""
    global _jwt_handler
    if _jwt_handler is None:
        _jwt_handler = JWTHandler()
    return _jwt_handler


def configure_jwt_handler(secret_key: str, algorithm: str, session_expiry: timedelta) -> JWTHandler:
    """Replace the singleton with one built from application settings."""
    global _jwt_handler
    _jwt_handler = JWTHandler(secret_key, algorithm, session_expiry)
    return _jwt_handler
