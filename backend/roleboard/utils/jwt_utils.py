"""JWT utilities: token signing and verification"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from roleboard.config import settings
from roleboard.errors import AuthenticationError
from roleboard.utils.logger import logger


def create_access_token(
    account_id: str,
    email: str,
    role: str,
    expires_in: Optional[int] = None,
) -> str:
    """Sign and return a bearer token for an account.

    Args:
        account_id: Value for the 'sub' claim.
        email:      Account email (claim ``email``).
        role:       Account role (claim ``role``).
        expires_in: Lifetime in seconds; defaults to ``JWT_EXPIRE_SECONDS``.

    Returns:
        Signed JWT string.
    """
    if expires_in is None:
        expires_in = settings.JWT_EXPIRE_SECONDS

    now = int(datetime.now(timezone.utc).timestamp())

    payload: Dict[str, Any] = {
        "sub": account_id,
        "email": email,
        "role": role,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify a JWT and return its payload.

    Expired and malformed tokens are reported separately so the client
    can tell "log in again" from "retry with a valid token".

    Raises:
        AuthenticationError: ``token_expired`` or ``token_invalid``.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired. Please log in again.", error="token_expired")
    except JWTError as exc:
        logger.debug(f"JWT decode failed: {exc}")
        raise AuthenticationError("Invalid token", error="token_invalid")

    if not payload.get("sub") or not payload.get("jti"):
        raise AuthenticationError("Invalid token payload", error="token_invalid")

    return payload


def token_expiry(payload: Dict[str, Any]) -> datetime:
    """Return the token's ``exp`` as a naive UTC datetime."""
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)
