"""
Core Authentication Primitives.

This module provides the token and password primitives behind the Auth Gate.
User rows live in the database (see `services.user_service`); this module only
knows how to hash and check passwords and how to issue and verify bearer
tokens.

Key Components:
- `JWTManager`: Creates and verifies HS256 access tokens carrying the user id,
  email and role. Tokens are valid for seven days.
- `PasswordManager`: bcrypt hashing and verification. The work factor comes
  from `BCRYPT_ROUNDS` so tests can run with a cheap one.

Architectural Design:
- Opaque to callers: the rest of the application sees `issue`/`verify` and
  `hash_password`/`verify_password`, nothing about the underlying crypto.
- Role is re-read from the store on admin checks; the role claim in the token
  is informational only.
"""

import os
import jwt
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Any
import bcrypt

from core.logging_config import get_logger
from core.exceptions import UnauthorizedError

logger = get_logger(__name__)


class JWTManager:
    """JWT token management"""

    def __init__(self, secret_key: str = None, algorithm: str = "HS256"):
        self.secret_key = secret_key or os.getenv("JWT_SECRET_KEY") or self._generate_secret_key()
        self.algorithm = algorithm
        self.access_token_expire = timedelta(days=7)

    def _generate_secret_key(self) -> str:
        """Generate a secure secret key"""
        key = secrets.token_urlsafe(32)
        logger.warning(
            "Generated new JWT secret key. This should be set via JWT_SECRET_KEY environment variable."
        )
        return key

    def create_access_token(
        self, user_id: str, email: str, role: str, expires_delta: timedelta = None
    ) -> str:
        """Create JWT access token"""
        if expires_delta is None:
            expires_delta = self.access_token_expire

        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "role": role,
            "exp": now + expires_delta,
            "iat": now,
            "jti": secrets.token_urlsafe(16),
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.info("Created access token", extra={"user_id": user_id})
        return token

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify and decode JWT token"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token has expired")
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid or expired token")

        if not payload.get("sub"):
            raise UnauthorizedError("Invalid or expired token")
        return payload


class PasswordManager:
    """Password hashing and verification"""

    @staticmethod
    def _rounds() -> int:
        return int(os.getenv("BCRYPT_ROUNDS", "12"))

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt"""
        salt = bcrypt.gensalt(rounds=PasswordManager._rounds())
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        """Verify password against hash"""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            return False


# Global token manager
_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get global token manager"""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


def init_jwt_manager() -> JWTManager:
    """Initialize global token manager"""
    global _jwt_manager
    _jwt_manager = JWTManager()
    logger.info("Initialized token manager")
    return _jwt_manager
