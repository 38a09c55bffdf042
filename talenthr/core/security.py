import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

import bcrypt
from jose import JWTError, jwt

from talenthr.core.config import settings

BCRYPT_ROUNDS = 10


def get_password_hash(password: str) -> str:
    """Hash a password (or an OTP code) with bcrypt"""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        # malformed hash
        return False


def _token_payload(user) -> dict:
    return {"sub": str(user.id), "email": user.email, "role": user.role}


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS))
    to_encode.update({"exp": expire, "type": "access", "iat": now})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(seconds=settings.REFRESH_TOKEN_EXPIRE_SECONDS))
    to_encode.update({"exp": expire, "type": "refresh", "iat": now})
    return jwt.encode(to_encode, settings.JWT_REFRESH_SECRET, algorithm=settings.ALGORITHM)


def create_token_pair(user) -> Tuple[str, str]:
    payload = _token_payload(user)
    return create_access_token(payload), create_refresh_token(payload)


def verify_token(token: str, token_type: str = "access") -> Optional[dict]:
    """Decode a token of the given type, or return None when invalid or expired"""
    secret = settings.JWT_SECRET if token_type == "access" else settings.JWT_REFRESH_SECRET
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_invitation_token() -> Tuple[str, str]:
    """Return (raw, hashed). Only the hash is ever persisted."""
    raw = secrets.token_hex(32)
    return raw, hash_token(raw)


def generate_otp_code() -> str:
    return f"{secrets.randbelow(900000) + 100000}"
