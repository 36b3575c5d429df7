import logging
from typing import Optional

from sqlmodel import Session

from app.core.config import settings
from app.core.db import transaction
from app.core.errors import (
    AuthenticationError,
    InvalidInputError,
    NotPairedError,
    UploadTooLargeError,
)
from app.models.couple import Couple
from app.models.user import User
from app.services.media import MediaGateway, couple_public_id

logger = logging.getLogger(__name__)

NO_COUPLE_MESSAGE = "No pairing found. Please pair with a partner first."


class SharedPictureService:
    """One picture per couple, hosted by the media gateway.

    The remote call happens before the row is touched, so a gateway failure
    never leaves the couple half-updated.
    """

    def __init__(self, session: Session, gateway: MediaGateway, max_bytes: Optional[int] = None):
        self.session = session
        self.gateway = gateway
        self.max_bytes = max_bytes or settings.MEDIA_MAX_BYTES

    def set_picture(self, user_id: int, data: bytes, content_type: str = "image/jpeg") -> str:
        if not data:
            raise InvalidInputError("No image file provided.", field="image")
        if len(data) > self.max_bytes:
            raise UploadTooLargeError(self.max_bytes)
        if not (content_type or "").startswith("image/"):
            raise InvalidInputError("Only image uploads are supported.", field="image")

        couple_id = self._couple_id(user_id)
        url = self.gateway.upload_image(data, couple_public_id(couple_id), content_type)

        with transaction(self.session, "set_shared_picture"):
            couple = self.session.get(Couple, couple_id, with_for_update=True)
            # unlinked while the upload was in flight
            if couple is None:
                raise NotPairedError(NO_COUPLE_MESSAGE)
            couple.shared_image_url = url
            self.session.add(couple)

        logger.info("Shared picture synced", extra={"user_id": user_id, "couple_id": couple_id})
        return url

    def delete_picture(self, user_id: int) -> None:
        couple_id = self._couple_id(user_id)
        self.gateway.delete_image(couple_public_id(couple_id))

        with transaction(self.session, "delete_shared_picture"):
            couple = self.session.get(Couple, couple_id, with_for_update=True)
            if couple is not None:
                couple.shared_image_url = None
                self.session.add(couple)

        logger.info("Shared picture removed", extra={"user_id": user_id, "couple_id": couple_id})

    def _couple_id(self, user_id: int) -> int:
        user = self.session.get(User, user_id, populate_existing=True)
        if user is None:
            raise AuthenticationError()
        couple_id = user.couple_id
        # no connection held while the gateway is called
        self.session.rollback()
        if couple_id is None:
            raise NotPairedError(NO_COUPLE_MESSAGE)
        return couple_id
