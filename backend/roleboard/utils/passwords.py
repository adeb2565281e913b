"""Password hashing and password policy"""
import re
from typing import List

import bcrypt

from roleboard.config import settings
from roleboard.utils.logger import logger

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72
SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>_\-+=\[\];'/\\`~]")


def hash_password(password: str) -> str:
    """Hash a password with bcrypt and a fresh per-password salt."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8")[:MAX_PASSWORD_BYTES], salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Compare a plain password with a stored bcrypt hash."""
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:MAX_PASSWORD_BYTES], hashed.encode("utf-8"))
    except ValueError as exc:
        # Malformed stored hash
        logger.error(f"Password verification error: {exc}")
        return False


def validate_password(password: str) -> List[str]:
    """Return the list of policy violations (empty when the password is acceptable)."""
    errors = []

    if len(password) < settings.PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not SPECIAL_CHARACTERS.search(password):
        errors.append("Password must contain at least one special character")

    return errors
