import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import (
    ACCESS_COOKIE, REFRESH_COOKIE,
    hash_password, verify_password, create_access_token,
    issue_refresh_token, consume_refresh_token,
    get_current_user, get_optional_user,
)
from app.core.config import settings
from app.core.database import get_db
from app.models.user import User
from app.schemas.auth import (
    MIN_PASSWORD_LENGTH,
    RegisterRequest, LoginRequest, RefreshRequest,
    UserResponse, Token, AuthResponse, VerifyResponse,
)
from app.services.accounts import create_default_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    response.set_cookie(
        ACCESS_COOKIE, access_token,
        httponly=True, secure=settings.COOKIE_SECURE, samesite="strict",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60, path="/",
    )
    response.set_cookie(
        REFRESH_COOKIE, refresh_token,
        httponly=True, secure=settings.COOKIE_SECURE, samesite="strict",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60, path="/",
    )


def _clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")


def _login_response(db: Session, user: User, response: Response) -> AuthResponse:
    """Issue a token pair for ``user``, commit it and set the cookies."""
    access_token = create_access_token({"sub": str(user.id)})
    refresh_token = issue_refresh_token(db, user.id)
    db.commit()
    db.refresh(user)
    _set_auth_cookies(response, access_token, refresh_token)
    return AuthResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserResponse.model_validate(user),
    )


# ─── Register ───
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
    )
    db.add(user)
    db.flush()
    create_default_account(db, user.id)

    logger.info("Registered user %s", user.email)
    return _login_response(db, user, response)


# ─── Login ───
@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email.strip().lower()).first()
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    logger.info("User %s logged in", user.email)
    return _login_response(db, user, response)


# ─── Demo login (creates the demo user on first use) ───
@router.post("/demo", response_model=AuthResponse)
def demo_login(response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == settings.DEMO_EMAIL).first()
    if not user:
        user = User(
            name="Demo User",
            email=settings.DEMO_EMAIL,
            password_hash=hash_password(settings.DEMO_PASSWORD),
        )
        db.add(user)
        db.flush()
        create_default_account(db, user.id)
        logger.info("Demo user created")
    return _login_response(db, user, response)


# ─── Refresh (rotates the refresh token) ───
@router.post("/refresh", response_model=Token)
def refresh(
    response: Response,
    payload: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    db: Session = Depends(get_db),
):
    raw_token = (payload.refresh_token if payload else None) or refresh_cookie
    if not raw_token:
        raise HTTPException(status_code=401, detail="Refresh token is required")

    user = consume_refresh_token(db, raw_token)
    if user is None:
        db.commit()
        rejected = JSONResponse(status_code=401, content={"detail": "Invalid or expired refresh token"})
        _clear_auth_cookies(rejected)
        return rejected

    access_token = create_access_token({"sub": str(user.id)})
    new_refresh = issue_refresh_token(db, user.id)
    db.commit()
    _set_auth_cookies(response, access_token, new_refresh)
    return Token(access_token=access_token, refresh_token=new_refresh)


# ─── Logout ───
@router.post("/logout")
def logout(
    response: Response,
    payload: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    db: Session = Depends(get_db),
):
    raw_token = (payload.refresh_token if payload else None) or refresh_cookie
    if raw_token:
        consume_refresh_token(db, raw_token)
        db.commit()
    _clear_auth_cookies(response)
    return {"status": "ok", "message": "Logged out"}


# ─── Current user ───
@router.get("/me", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)):
    return user


# ─── Verify (never 401s; reports whether the caller is signed in) ───
@router.get("/verify", response_model=VerifyResponse)
def verify(user: Optional[User] = Depends(get_optional_user)):
    if user is None:
        return VerifyResponse(is_authenticated=False)
    return VerifyResponse(is_authenticated=True, user=UserResponse.model_validate(user))
