"""
Password hashing with bcrypt.

Hashes are ``$2b$`` strings stored in ``users.password_hash``.
"""

import bcrypt

BCRYPT_ROUNDS = 12


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str | None, password_hash: str | None) -> bool:
    """Verify a plain-text password against its bcrypt hash."""
    if not password_hash or plain_password is None:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Not a bcrypt hash (e.g. a plain value imported from the legacy files)
        return False
