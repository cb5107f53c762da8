"""Password hashing utilities.

Uses bcrypt for secure password hashing. bcrypt automatically
handles salting, and checkpw compares in constant time.
The work factor comes from settings (12 in production, lower in tests).
"""

import bcrypt

from companion.config import settings

# bcrypt ignores input beyond 72 bytes; newer releases raise instead.
_MAX_BYTES = 72


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt. Returns a "$2b$..." string."""
    pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash.

    A malformed stored hash counts as a mismatch rather than an error.
    """
    try:
        pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False
