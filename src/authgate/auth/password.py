"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt generates a random salt
per hash and embeds it (and the cost factor) in the "$2b$..." string, so
the stored value is all verify_password() needs. The work factor is
adaptive: each +1 round doubles the cost of every brute-force guess.

Comparison happens inside bcrypt.checkpw, which is constant-time by
construction. We never compare hash bytes ourselves.
"""

import bcrypt

# bcrypt only looks at the first 72 bytes of the input, so longer
# passwords are refused rather than silently truncated.
MAX_PASSWORD_BYTES = 72

DEFAULT_ROUNDS = 12


def _encode(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
    return encoded


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    Learn: rounds=12 takes roughly 100-250ms on modern hardware. Tests
    pass a lower value to keep the suite fast.

    Raises ValueError for passwords over MAX_PASSWORD_BYTES.
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash.

    A malformed stored hash, or a password longer than bcrypt can hash,
    is treated as a mismatch.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False
