from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from ems.core.config import settings
from ems.core.exceptions import AuthenticationError, ExpiredToken, InvalidToken
from ems.core.permissions import ensure_admin, ensure_can_manage

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt ignores everything past 72 bytes
MAX_PASSWORD_BYTES = 72

bearer_scheme = HTTPBearer(auto_error=False)


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def get_password_hash(password: str) -> str:
    if password_too_long(password):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash or password_too_long(plain_password):
        return False
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(subject: str, role: str, email: Optional[str] = None,
                        expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    payload = {
        "sub": subject,
        "role": role,
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredToken() from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken() from exc

    if not payload.get("sub") or not payload.get("role"):
        raise InvalidToken()
    return payload


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """Resolve the caller from the bearer token. Stateless: the DB is not consulted."""
    if credentials is None:
        raise AuthenticationError("Not authenticated. Please log in.")
    payload = decode_access_token(credentials.credentials)
    return {"id": payload["sub"], "email": payload.get("email"), "role": payload["role"]}


async def require_manager(current_user: dict = Depends(verify_token)) -> dict:
    return ensure_can_manage(current_user)


async def require_admin(current_user: dict = Depends(verify_token)) -> dict:
    return ensure_admin(current_user)
