"""
Bearer token issuing and validation
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt


class TokenError(Exception):
    """Token could not be verified"""
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    username: Optional[str] = None


class TokenService:
    """
    Signs and verifies HS256 tokens carrying the user's id and username.

    Expiry is whatever the signing layer enforces: an ``exp`` claim is only
    added when ``ttl_seconds`` is configured, and PyJWT rejects expired
    tokens on decode.
    """

    def __init__(self, secret: Optional[str], algorithm: str = "HS256", ttl_seconds: Optional[int] = None):
        if not secret:
            raise ValueError(
                "JWT_SECRET environment variable is required. "
                "Set it to a secure random value (e.g., openssl rand -base64 32)"
            )
        self.secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_config(cls, config) -> "TokenService":
        return cls(config.secret, algorithm=config.algorithm, ttl_seconds=config.token_ttl_seconds)

    def issue(self, user_id: str, username: str) -> str:
        payload = {
            "sub": user_id,
            "username": username,
        }
        if self.ttl_seconds:
            payload["exp"] = datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and verify a token

        Raises:
            TokenError: malformed, badly signed, expired or missing a subject
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")

        user_id = payload.get("sub")
        if not user_id:
            raise TokenError("Invalid token: missing subject")
        return TokenClaims(user_id=user_id, username=payload.get("username"))
