from .passwords import dummy_verify, hash_password, verify_password
from .tokens import TokenClaims, TokenError, TokenService

__all__ = [
    "TokenClaims",
    "TokenError",
    "TokenService",
    "dummy_verify",
    "hash_password",
    "verify_password",
]
