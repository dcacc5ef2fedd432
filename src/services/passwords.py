"""Password hashing with bcrypt."""

import bcrypt

from domain.model.user import MAX_PASSWORD_BYTES

# 2^12 iterations
BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    """Check `plain` against a stored bcrypt hash.

    Input bcrypt would refuse (over 72 bytes) can never match a stored hash,
    so it is reported as a mismatch rather than raising.
    """
    if not hashed or not isinstance(plain, str):
        return False
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
