from functools import lru_cache
from typing import Generator, Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from app.core.config import settings
from app.core.db import engine
from app.core.errors import AuthenticationError
from app.core.security import decode_access_token
from app.models.user import User
from app.services.media import CloudinaryMediaGateway, MediaGateway
from app.services.pairing import PairingService
from app.services.shared_picture import SharedPictureService

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False,
)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]
TokenDep = Annotated[str | None, Depends(reusable_oauth2)]


def get_current_user(session: SessionDep, token: TokenDep) -> User:
    if not token:
        raise AuthenticationError("Authentication required.")
    user_id = decode_access_token(token)
    user = session.get(User, user_id)
    if not user:
        # token outlived its account
        raise AuthenticationError()
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_pairing_service(session: SessionDep) -> PairingService:
    return PairingService(session, settings)


PairingServiceDep = Annotated[PairingService, Depends(get_pairing_service)]


@lru_cache
def get_media_gateway() -> MediaGateway:
    return CloudinaryMediaGateway.from_settings(settings)


def get_shared_picture_service(
    session: SessionDep,
    gateway: Annotated[MediaGateway, Depends(get_media_gateway)],
) -> SharedPictureService:
    return SharedPictureService(session, gateway, settings.MEDIA_MAX_BYTES)


SharedPictureServiceDep = Annotated[SharedPictureService, Depends(get_shared_picture_service)]
