"""
Password hashing and access tokens.
"""

from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt

from medibook.errors import Unauthorized


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a candidate password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


class TokenService:
    """Signs and decodes the JWTs handed out at login."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self._secret = secret
        self._algorithm = algorithm

    def create_token(self, user_id: str) -> str:
        return jwt.encode({"id": user_id}, self._secret, algorithm=self._algorithm)

    def decode_token(self, token: str) -> str:
        """Return the user id carried by ``token``."""
        try:
            payload: Dict[str, Any] = jwt.decode(
                token, self._secret, algorithms=[self._algorithm]
            )
        except JWTError as e:
            raise Unauthorized("Not Authorized Login Again") from e

        user_id = payload.get("id")
        if not user_id:
            raise Unauthorized("Not Authorized Login Again")
        return user_id
