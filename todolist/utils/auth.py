import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Optional

from fastapi import Cookie, Header
from jose import jwt, JWTError
from passlib.context import CryptContext
from todolist.config import SECRET_KEY, ALGORITHM, TOKEN_COOKIE_NAME
from todolist.errors import Unauthenticated

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, valid for the duration of one request."""

    user_id: int
    email: str


def hash_password(password: str):
    """Hash a password after validating bcrypt's 72-byte limit.

    Raises ValueError if the UTF-8 encoding of the password exceeds 72 bytes.
    Requests to /register are already bounded by UserCreate; this guards
    direct callers, since bcrypt would otherwise reject or truncate the secret.
    """
    if isinstance(password, str):
        b = password.encode("utf-8")
        if len(b) > BCRYPT_MAX_BYTES:
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_token(user_id: int, email: str) -> str:
    # read expiry at call-time so tests (and runtime overrides) that modify
    # todolist.config.ACCESS_TOKEN_EXPIRE_MINUTES take effect immediately
    import todolist.config as _cfg
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=_cfg.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "userId": user_id,
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),  # JWT spec uses Unix timestamp
    }
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> Identity:
    """Check signature and expiry and return the embedded identity.

    Any failure (expired, tampered, malformed, missing claims) raises the same
    Unauthenticated error.
    """
    try:
        # jwt.decode validates exp automatically
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.debug("Token rejected: %s", exc)
        raise Unauthenticated("Invalid or expired token")

    user_id = payload.get("userId")
    email = payload.get("email")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(email, str):
        logger.debug("Token rejected: missing identity claims")
        raise Unauthenticated("Invalid or expired token")
    return Identity(user_id=user_id, email=email)


def extract_token(cookie_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
    """Return token from the session cookie or the Authorization header (Bearer ...).
    Cookie has precedence.
    """
    if cookie_token:
        return cookie_token
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


def authenticate(cookie_token: Optional[str], authorization: Optional[str]) -> Identity:
    tok = extract_token(cookie_token, authorization)
    if not tok:
        raise Unauthenticated("Missing authentication token")
    return verify_token(tok)


def get_current_identity(
    token: Optional[str] = Cookie(None, alias=TOKEN_COOKIE_NAME),
    authorization: Optional[str] = Header(None),
) -> Identity:
    """FastAPI dependency guarding every authenticated route."""
    return authenticate(token, authorization)
