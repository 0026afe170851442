"""
Password hashing for gated resources.

Passwords are bcrypt-hashed before storage; verification goes through
``bcrypt.checkpw``, which compares in constant time.
"""
import logging
from typing import Optional

import bcrypt

from textshare.core.config import settings

logger = logging.getLogger(__name__)

# bcrypt only uses the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a plaintext password with bcrypt.

    Args:
        password: The plaintext password
        rounds: bcrypt cost factor (defaults to BCRYPT_ROUNDS)

    Returns:
        str: The encoded bcrypt hash
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: Optional[str], password_hash: str) -> bool:
    """
    Check a plaintext password against a stored bcrypt hash.

    A missing password never matches. A malformed stored hash is logged and
    treated as a mismatch.
    """
    if not password:
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.error("Stored password hash is malformed")
        return False
