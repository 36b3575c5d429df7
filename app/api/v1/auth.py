import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse
from fastapi_sso.sso.google import GoogleSSO
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from sqlmodel import Session, select

from app.api import deps
from app.core.config import settings
from app.core.db import transaction
from app.core.errors import (
    AuthenticationError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    SSONotConfiguredError,
    StorageConflictError,
)
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.schemas.token import Token
from app.schemas.user import GoogleTokenLogin, UserCreate, UserLogin, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def get_google_sso() -> Optional[GoogleSSO]:
    if not (settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET):
        logger.warning("Google SSO disabled: GOOGLE_CLIENT_ID/SECRET not set")
        return None
    return GoogleSSO(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        redirect_uri=settings.SSO_CALLBACK_URL,
        allow_insecure_http=settings.SSO_CALLBACK_URL.startswith("http://"),
    )


def token_for(user: User) -> dict:
    return {
        "access_token": create_access_token(user.id),
        "token_type": "bearer",
        "user": UserPublic.model_validate(user),
    }


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(session: deps.SessionDep, body: UserCreate) -> Any:
    """Create a local account and return a session token."""
    email = body.email.lower()
    if session.exec(select(User).where(User.email == email)).first():
        raise EmailAlreadyRegisteredError()

    user = User(
        email=email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name,
    )
    try:
        with transaction(session, "register"):
            session.add(user)
    except StorageConflictError:
        # lost a race with another registration for the same email
        raise EmailAlreadyRegisteredError()
    session.refresh(user)
    logger.info("User registered", extra={"user_id": user.id})
    return token_for(user)


@router.post("/login", response_model=Token)
def login(session: deps.SessionDep, body: UserLogin) -> Any:
    """Password login. Unknown email and wrong password look the same."""
    user = session.exec(select(User).where(User.email == body.email.lower())).first()
    if not user or not verify_password(body.password, user.hashed_password):
        raise InvalidCredentialsError()
    return token_for(user)


@router.get("/login/google", response_class=RedirectResponse)
async def google_login():
    """Generate login URL and redirect"""
    google_sso = get_google_sso()
    if not google_sso:
        raise SSONotConfiguredError()
    async with google_sso:
        return await google_sso.get_login_redirect()


@router.get("/callback/google", response_model=Token)
async def google_callback(request: Request, session: deps.SessionDep):
    """Process login response from Google and return JWT"""
    google_sso = get_google_sso()
    if not google_sso:
        raise SSONotConfiguredError()

    try:
        async with google_sso:
            user_info = await google_sso.verify_and_process(request)
    except Exception as e:
        logger.warning(f"Google SSO verification failed: {e}")
        raise AuthenticationError("Google authentication failed.")

    if not user_info or not user_info.email:
        raise AuthenticationError("No email returned from Google.")

    user = get_or_create_google_user(
        session, user_info.email, user_info.display_name, user_info.picture
    )
    return token_for(user)


def verify_google_id_token(token: str) -> dict:
    """Check signature, expiry and audience of a Google ID token; return its claims."""
    return google_id_token.verify_oauth2_token(
        token, google_requests.Request(), settings.GOOGLE_CLIENT_ID
    )


@router.post("/google", response_model=Token)
def google_token_login(session: deps.SessionDep, body: GoogleTokenLogin) -> Any:
    """Sign in with an ID token obtained by the mobile Google sign-in flow."""
    if not settings.GOOGLE_CLIENT_ID:
        raise SSONotConfiguredError()

    try:
        claims = verify_google_id_token(body.id_token)
    except (ValueError, GoogleAuthError) as e:
        logger.warning(f"Google ID token rejected: {e}")
        raise AuthenticationError("Google authentication failed.")

    email = claims.get("email")
    if not email or not claims.get("email_verified"):
        raise AuthenticationError("No verified email returned from Google.")

    user = get_or_create_google_user(session, email, claims.get("name"), claims.get("picture"))
    return token_for(user)


def get_or_create_google_user(
    session: Session, email: str, full_name: Optional[str], picture: Optional[str]
) -> User:
    email = email.lower()
    user = session.exec(select(User).where(User.email == email)).first()
    if user:
        return user

    user = User(email=email, full_name=full_name, picture=picture)
    try:
        with transaction(session, "google_signup"):
            session.add(user)
    except StorageConflictError:
        # the same account signed up concurrently
        return session.exec(select(User).where(User.email == email)).one()
    session.refresh(user)
    logger.info("User registered via Google", extra={"user_id": user.id})
    return user
