import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unknown or corrupt hash
        return False


def generate_temp_password() -> str:
    """Random password for invited users (16 random bytes, hex encoded)."""
    return secrets.token_hex(16)


def _create_token(subject: Union[str, Any], token_type: str, expires_delta: timedelta) -> str:
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject), "type": token_type}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _create_token(subject, ACCESS_TOKEN_TYPE, expires_delta)


def create_refresh_token(subject: Union[str, Any]) -> str:
    return _create_token(
        subject, REFRESH_TOKEN_TYPE, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )


def _decode(token: str, token_type: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload.get("sub")


def verify_token(token: str) -> Optional[str]:
    """Return the subject of a valid access token, None otherwise."""
    return _decode(token, ACCESS_TOKEN_TYPE)


def verify_refresh_token(token: str) -> Optional[str]:
    return _decode(token, REFRESH_TOKEN_TYPE)
