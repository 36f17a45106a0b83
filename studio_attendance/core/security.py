# studio_attendance/core/security.py
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

RESET_TOKEN_TTL = timedelta(hours=1)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


def create_session_token(sid: str, secret: str, algorithm: str, expires_at: datetime) -> str:
    """Signs the session id that goes into the cookie."""
    return jwt.encode({"sid": sid, "exp": expires_at}, secret, algorithm=algorithm)


def decode_session_token(token: str, secret: str, algorithm: str) -> Optional[str]:
    """Returns the session id carried by a cookie, or None for a bad/expired token."""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) else None


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    # Only the digest is stored, the raw token lives in the e-mail link.
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def reset_token_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.utcnow()) + RESET_TOKEN_TTL
