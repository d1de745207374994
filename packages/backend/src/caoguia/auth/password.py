"""Password hashing utilities.

bcrypt handles salting itself and produces hashes starting with "$2b$".
The work factor comes from settings (12 by default, ~100ms per hash).
Passwords are truncated to 72 bytes (bcrypt's limit).
"""

from typing import Optional

import bcrypt

from caoguia.config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False
