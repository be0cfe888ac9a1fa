import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# auto_error=False so the cookie transport can be tried when no header is sent
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[int]:
    """Return the user id carried by a valid access token, else None."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    user_id_str = payload.get("sub")
    if user_id_str is None:
        return None
    try:
        return int(user_id_str)
    except (TypeError, ValueError):
        return None


def hash_refresh_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


def issue_refresh_token(db: Session, user_id: int) -> str:
    """Store a new refresh token for the user and return the raw value.

    Only the SHA-256 digest is persisted; the raw token goes to the client.
    The caller commits.
    """
    from app.models.refresh_token import RefreshToken

    raw_token = secrets.token_urlsafe(48)
    db.add(RefreshToken(
        user_id=user_id,
        token_hash=hash_refresh_token(raw_token),
        expires_at=datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    ))
    return raw_token


def consume_refresh_token(db: Session, raw_token: str):
    """Delete a refresh token and return its user if it was still valid.

    Expired tokens are deleted too, but yield None. The caller commits.
    """
    from app.models.refresh_token import RefreshToken
    from app.models.user import User

    record = db.query(RefreshToken).filter(
        RefreshToken.token_hash == hash_refresh_token(raw_token),
    ).first()
    if not record:
        return None

    # Normalize expires_at to UTC-aware if stored as naive datetime
    expires = record.expires_at
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)

    user_id = record.user_id
    db.delete(record)
    if expires < datetime.now(timezone.utc):
        return None
    return db.query(User).filter(User.id == user_id).first()


def _resolve_user(request: Request, token: Optional[str], db: Session):
    from app.models.user import User

    token = token or request.cookies.get(ACCESS_COOKIE)
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        return None
    return db.query(User).filter(User.id == user_id).first()


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    """Resolve the caller from a bearer header or the access-token cookie."""
    user = _resolve_user(request, token, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    return _resolve_user(request, token, db)
