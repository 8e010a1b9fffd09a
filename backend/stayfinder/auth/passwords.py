"""Password hashing and verification with bcrypt."""

import bcrypt

from stayfinder.config import settings


def hash_password(password: str) -> str:
    """Hash a plain-text password with a fresh salt.

    The work factor comes from ``settings.bcrypt_rounds`` so tests can
    lower it.
    """
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if ``plain_password`` matches ``hashed_password``."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
