"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor is embedded in every hash ("$2b$12$..."), so a hash
made under an older cost setting still verifies after the setting
changes. needs_rehash() spots those and login upgrades them.
"""

import bcrypt

from userhub.config import settings

# bcrypt only reads this many bytes of input; longer passwords are refused
# rather than cut, so every byte of an accepted password counts.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Raises ValueError for passwords over
    MAX_PASSWORD_BYTES; the signup policy reports that before we get here.
    """
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash (constant-time compare)."""
    try:
        pw_bytes = password.encode("utf-8")
        if len(pw_bytes) > MAX_PASSWORD_BYTES:
            return False
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError, AttributeError):
        return False


def hash_cost(password_hash: str) -> int | None:
    """Return the work factor embedded in a bcrypt hash, or None."""
    try:
        _, _variant, cost, _rest = password_hash.split("$", 3)
        return int(cost)
    except (ValueError, AttributeError):
        return None


def needs_rehash(password_hash: str) -> bool:
    """Check if a hash was made with fewer rounds than currently configured."""
    cost = hash_cost(password_hash)
    return cost is None or cost < settings.bcrypt_rounds
