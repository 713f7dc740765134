"""
Broker authentication: TOTP generation and session token caching.
"""

from .base32 import BASE32_ALPHABET, b32decode
from .exceptions import AuthenticationError
from .protocols import KeyValueStore, LoginRoutine
from .token_cache import TOKEN_TTL_SECONDS, TokenCache
from .totp import Signer, TOTPGenerator, generate_totp, hmac_sha1

__all__ = [
    "AuthenticationError",
    "BASE32_ALPHABET",
    "KeyValueStore",
    "LoginRoutine",
    "Signer",
    "TOKEN_TTL_SECONDS",
    "TOTPGenerator",
    "TokenCache",
    "b32decode",
    "generate_totp",
    "hmac_sha1",
]
