import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

import config
from errors import BadRequestError

logger = logging.getLogger(__name__)

_fallback_secret: Optional[str] = None

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def signing_secret() -> str:
    global _fallback_secret
    if config.JWT_SECRET:
        return config.JWT_SECRET
    if _fallback_secret is None:
        # Tokens signed with this secret do not survive a restart
        logger.warning("JWT_SECRET is not set; using a random per-process secret")
        _fallback_secret = secrets.token_urlsafe(32)
    return _fallback_secret


def hash_password(password: str) -> str:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise BadRequestError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def issue_token(email: str, secret: Optional[str] = None) -> str:
    """Sign a token carrying the ``email`` claim.

    Without ``JWT_EXPIRES_MINUTES`` the token has no expiry, so the same
    secret and email always produce the same token.
    """
    claims: Dict[str, Any] = {"email": email}
    if config.JWT_EXPIRES_MINUTES:
        claims["exp"] = datetime.now(timezone.utc) + timedelta(minutes=config.JWT_EXPIRES_MINUTES)
    return jwt.encode(claims, secret or signing_secret(), algorithm=config.JWT_ALGORITHM)


def decode_token(token: str, secret: Optional[str] = None) -> Dict[str, Any]:
    return jwt.decode(token, secret or signing_secret(), algorithms=[config.JWT_ALGORITHM])
