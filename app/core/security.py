import datetime
from typing import Optional

from jose import jwt, JWTError
from werkzeug.security import generate_password_hash, check_password_hash

from app.core.config import settings
from app.core.errors import AuthenticationError


def create_access_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    """Issue a signed bearer token whose subject is the user id."""
    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=minutes)
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id a token was issued for, or raise AuthenticationError."""
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise AuthenticationError()

    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise AuthenticationError()


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    # federated accounts have no local password
    if not hashed_password:
        return False
    return check_password_hash(hashed_password, password)
