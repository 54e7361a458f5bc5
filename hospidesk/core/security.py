# hospidesk/core/security.py
"""
Password hashing and access tokens of the local identity provider.

Tokens identify the principal only (uid + email). The role is never put in a
token: it is read from the live profile on every request.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from hospidesk.core.config import settings

TOKEN_TYPE = "access"

_pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return _pwd_ctx.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return _pwd_ctx.verify(plain_password, password_hash)


def create_access_token(
    *,
    subject: str,
    email: str,
    secret: str,
    expires_minutes: int = 60,
    algorithm: str | None = None,
) -> str:
    issued = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "email": email,
        "type": TOKEN_TYPE,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=algorithm or settings.jwt_alg)


def decode_token(token: str, secret: str, algorithm: str | None = None) -> Dict[str, Any]:
    """Claims of a valid access token; ValueError otherwise."""
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm or settings.jwt_alg])
    except ExpiredSignatureError as e:
        raise ValueError("token_expired") from e
    except JWTError as e:
        raise ValueError("invalid_token") from e
    if claims.get("type") != TOKEN_TYPE or not claims.get("sub"):
        raise ValueError("invalid_token_payload")
    return claims
