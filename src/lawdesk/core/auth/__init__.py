"""Authentication: credentials, tokens and the per-request access gate.

Only the dependency-free primitives are re-exported here; import the service,
routes and FastAPI dependencies from their modules.
"""

from lawdesk.core.auth.backend import (
    create_access_token,
    decode_access_token,
    generate_refresh_token,
    hash_credential,
    hash_token,
    verify_credential,
)
from lawdesk.core.auth.schemas import TokenClaims, TokenPair


__all__ = [
    # Schemas
    "TokenClaims",
    "TokenPair",
    # Token utilities
    "create_access_token",
    "decode_access_token",
    "generate_refresh_token",
    "hash_credential",
    "hash_token",
    "verify_credential",
]
