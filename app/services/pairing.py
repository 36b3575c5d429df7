"""Couple pairing state machine.

A user is SOLO (no couple), WAITING as the creator of a waiting couple, or
PAIRED in a full couple. Every transition below runs as one transaction:
either every row change commits or none does.
"""

import logging
import secrets
import string
from typing import Any, Dict, Optional

from sqlalchemy import delete, update
from sqlmodel import Session, select

from app.core.config import Settings, settings as default_settings
from app.core.db import transaction
from app.core.errors import (
    AlreadyPairedError,
    AuthenticationError,
    InvalidInputError,
    InvalidInviteCodeError,
    InviteAlreadyUsedError,
    InviteCodeUnavailableError,
    InviteNotFoundError,
    NoActiveInviteError,
    NotPairedError,
    SelfPairingError,
    StorageConflictError,
)
from app.models.couple import INVITE_CODE_INDEX, Couple, CoupleStatus
from app.models.user import User
from app.schemas.pairing import (
    InvitePreview,
    InviteResponse,
    PairResult,
    PartnerInfo,
    ProfileFields,
    RelationshipInfo,
    StatusResponse,
)

logger = logging.getLogger(__name__)

# Default gender handed to a joiner when the creator picked one of these
COMPLEMENTARY_GENDER = {"Boy": "Girl", "Girl": "Boy"}


def generate_code(length=6):
    chars = string.ascii_uppercase + string.digits
    return ''.join(secrets.choice(chars) for _ in range(length))


def normalize_code(code: Optional[str]) -> str:
    """Trim and uppercase an invite code; blank codes are rejected."""
    clean = (code or "").strip().upper()
    if not clean:
        raise InvalidInputError("Please enter your partner's invite code.", field="inviteCode")
    return clean


def is_invite_code_collision(error: StorageConflictError) -> bool:
    """True when the conflict came from the waiting-invite-code unique index."""
    cause = getattr(error.__cause__, "orig", error.__cause__)
    message = str(cause or "")
    # PostgreSQL names the index, SQLite names the column
    return INVITE_CODE_INDEX in message or "couple.invite_code" in message


class PairingService:
    def __init__(self, session: Session, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or default_settings

    def invite_link(self, code: str) -> str:
        return f"{self.settings.FRONTEND_URL}/join?code={code}"

    # ─── Onboarding (creator side) ──────────────────────────────

    def create_invite(
        self,
        user_id: int,
        profile: ProfileFields,
        relationship_type: Optional[str] = None,
    ) -> InviteResponse:
        """Put the user in WAITING state behind a fresh invite code.

        A code collision with another waiting couple aborts the whole
        transaction; it is retried from scratch with a new code.
        """
        attempts = self.settings.INVITE_CODE_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            try:
                return self._create_invite_once(user_id, profile, relationship_type)
            except StorageConflictError as e:
                if not is_invite_code_collision(e):
                    raise
                logger.warning(
                    "Invite code collision, retrying",
                    extra={"user_id": user_id, "attempt": attempt},
                )
        raise InviteCodeUnavailableError(attempts)

    def _create_invite_once(
        self, user_id: int, profile: ProfileFields, relationship_type: Optional[str]
    ) -> InviteResponse:
        with transaction(self.session, "create_invite"):
            user = self._lock_user(user_id)

            current = self._current_couple(user, lock=True)
            if current is not None:
                if current.status == CoupleStatus.FULL:
                    raise AlreadyPairedError()
                # re-onboarding replaces the previous unanswered invite
                user.couple_id = None
                self.session.add(user)
                self.session.flush()
                if not self._drop_waiting_couple(current.id):
                    # someone joined it since it was read
                    raise AlreadyPairedError()

            user.nickname = profile.nickname
            user.avatar_id = profile.avatar_id
            user.gender = profile.gender

            code = generate_code(self.settings.INVITE_CODE_LENGTH)
            couple = Couple(
                invite_code=code,
                creator_id=user.id,
                status=CoupleStatus.WAITING.value,
                relationship_type=relationship_type,
            )
            self.session.add(couple)
            self.session.flush()

            user.couple_id = couple.id
            self.session.add(user)
            couple_id = couple.id

        logger.info("Invite created", extra={"user_id": user_id, "couple_id": couple_id})
        return InviteResponse(
            invite_code=code,
            invite_link=self.invite_link(code),
            couple_id=couple_id,
            relationship_type=relationship_type,
        )

    def get_invite_details(self, user_id: int) -> InviteResponse:
        couple = self.session.exec(
            select(Couple).where(
                Couple.creator_id == user_id,
                Couple.status == CoupleStatus.WAITING.value,
            )
        ).first()
        if couple is None:
            raise NoActiveInviteError()
        return InviteResponse(
            invite_code=couple.invite_code,
            invite_link=self.invite_link(couple.invite_code),
            couple_id=couple.id,
            relationship_type=couple.relationship_type,
        )

    def preview_invite(self, code: str) -> InvitePreview:
        """Public, read-only look at an invite.

        Unknown codes and already-claimed codes fail differently so the client
        can tell a broken link from one that was used.
        """
        clean = normalize_code(code)
        row = self.session.exec(
            select(Couple, User)
            .join(User, Couple.creator_id == User.id)
            .where(
                Couple.invite_code == clean,
                Couple.status == CoupleStatus.WAITING.value,
            )
        ).first()
        if row is None:
            used = self.session.exec(
                select(Couple.id).where(Couple.invite_code == clean)
            ).first()
            if used is not None:
                raise InviteAlreadyUsedError()
            raise InviteNotFoundError()

        couple, creator = row
        name = creator.nickname or creator.full_name or "Your partner"
        return InvitePreview(
            creator_nickname=creator.nickname,
            creator_avatar=creator.avatar_id,
            relationship_type=couple.relationship_type,
            message=f"{name} is waiting for you to join!",
        )

    # ─── Pairing (joiner side) ──────────────────────────────────

    def pair(self, joiner_id: int, code: str, profile: ProfileFields) -> PairResult:
        clean = normalize_code(code)

        with transaction(self.session, "pair"):
            couple = self._find_waiting_couple(clean)
            if couple is None:
                raise InvalidInviteCodeError()
            if couple.creator_id == joiner_id:
                raise SelfPairingError()

            joiner = self._lock_user(joiner_id)
            creator = self.session.get(User, couple.creator_id)

            current = self._current_couple(joiner, lock=True)
            ghost_id = None
            if current is not None and current.id != couple.id:
                if current.status == CoupleStatus.FULL:
                    raise AlreadyPairedError()
                ghost_id = current.id

            if profile.nickname:
                joiner.nickname = profile.nickname
            if profile.avatar_id:
                joiner.avatar_id = profile.avatar_id
            if profile.gender:
                joiner.gender = profile.gender
            elif creator is not None and creator.gender in COMPLEMENTARY_GENDER:
                joiner.gender = COMPLEMENTARY_GENDER[creator.gender]

            joiner.couple_id = couple.id
            self.session.add(joiner)
            self.session.flush()

            if ghost_id is not None:
                if not self._drop_waiting_couple(ghost_id):
                    # the joiner's own invite was claimed meanwhile
                    raise AlreadyPairedError()
                logger.info(
                    "Removed abandoned invite",
                    extra={"user_id": joiner_id, "couple_id": ghost_id},
                )

            if not self._claim_couple(couple.id, joiner_id):
                # another joiner committed first
                raise InvalidInviteCodeError()

            couple_id = couple.id
            relationship_type = couple.relationship_type

        logger.info("Couple paired", extra={"user_id": joiner_id, "couple_id": couple_id})
        return PairResult(couple_id=couple_id, relationship_type=relationship_type)

    def _find_waiting_couple(self, code: str) -> Optional[Couple]:
        return self.session.exec(
            select(Couple)
            .where(
                Couple.invite_code == code,
                Couple.status == CoupleStatus.WAITING.value,
            )
            .with_for_update()
        ).first()

    def _claim_couple(self, couple_id: int, joiner_id: int) -> bool:
        """Flip a waiting couple to full. False when it was no longer waiting."""
        result = self.session.execute(
            update(Couple)
            .where(
                Couple.id == couple_id,
                Couple.status == CoupleStatus.WAITING.value,
            )
            .values(partner_id=joiner_id, status=CoupleStatus.FULL.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ─── Teardown ───────────────────────────────────────────────

    def unlink(self, user_id: int) -> None:
        """Dissolve the caller's couple for both members.

        Profiles are kept; the couple row, answers and shared image reference
        are deleted.
        """
        with transaction(self.session, "unlink"):
            user = self._lock_user(user_id)
            couple_id = user.couple_id
            if couple_id is None:
                raise NotPairedError()

            self.session.execute(
                update(User)
                .where(User.couple_id == couple_id)
                .values(couple_id=None)
                .execution_options(synchronize_session=False)
            )
            self.session.execute(delete(Couple).where(Couple.id == couple_id))

        logger.info("Couple unlinked", extra={"user_id": user_id, "couple_id": couple_id})

    # ─── Shared state ───────────────────────────────────────────

    def submit_answers(self, user_id: int, answers: Dict[str, Any]) -> None:
        """Merge the caller's welcome answers into the couple's answer map."""
        with transaction(self.session, "submit_answers"):
            user = self._lock_user(user_id)
            if user.couple_id is None:
                raise NotPairedError("No couple connection found.")
            couple = self.session.exec(
                select(Couple)
                .where(Couple.id == user.couple_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).one()

            merged = dict(couple.answers or {})
            merged[str(user_id)] = answers
            couple.answers = merged
            user.onboarded = True
            self.session.add(couple)
            self.session.add(user)

        logger.info("Welcome answers saved", extra={"user_id": user_id})

    def get_status(self, user_id: int) -> StatusResponse:
        """Derive solo / waiting / couple from the stored rows."""
        user = self.session.get(User, user_id)
        if user is None:
            raise AuthenticationError()
        couple = self._current_couple(user)
        if couple is None:
            return StatusResponse(mode="solo")

        relationship = RelationshipInfo(
            type=couple.relationship_type,
            since=couple.created_at,
            shared_image=couple.shared_image_url,
        )
        if couple.status != CoupleStatus.FULL:
            return StatusResponse(mode="waiting", relationship=relationship)

        partner = self.session.exec(
            select(User).where(User.couple_id == couple.id, User.id != user_id)
        ).first()
        return StatusResponse(
            mode="couple",
            relationship=relationship,
            partner=PartnerInfo.model_validate(partner, from_attributes=True) if partner else None,
        )

    # ─── Helpers ────────────────────────────────────────────────

    def _lock_user(self, user_id: int) -> User:
        user = self.session.exec(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if user is None:
            raise AuthenticationError()
        return user

    def _current_couple(self, user: User, lock: bool = False) -> Optional[Couple]:
        if user.couple_id is None:
            return None
        if not lock:
            return self.session.get(Couple, user.couple_id)
        return self.session.exec(
            select(Couple)
            .where(Couple.id == user.couple_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()

    def _drop_waiting_couple(self, couple_id: int) -> bool:
        """Delete a couple only while it is still waiting."""
        result = self.session.execute(
            delete(Couple)
            .where(
                Couple.id == couple_id,
                Couple.status == CoupleStatus.WAITING.value,
            )
        )
        return result.rowcount == 1
