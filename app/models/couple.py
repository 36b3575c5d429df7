from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, Index, text
from sqlmodel import Field, SQLModel

INVITE_CODE_INDEX = "uq_couple_waiting_invite_code"


class CoupleStatus(str, Enum):
    WAITING = "waiting"
    FULL = "full"


class Couple(SQLModel, table=True):
    # Codes are unique among waiting couples only; a code may come back once
    # its couple is full or deleted.
    __table_args__ = (
        Index(
            INVITE_CODE_INDEX,
            "invite_code",
            unique=True,
            postgresql_where=text("status = 'waiting'"),
            sqlite_where=text("status = 'waiting'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    invite_code: str = Field(max_length=16)
    status: str = Field(default=CoupleStatus.WAITING.value, max_length=16)

    creator_id: int = Field(foreign_key="user.id", index=True)
    partner_id: Optional[int] = Field(default=None, foreign_key="user.id")

    relationship_type: Optional[str] = None
    # user id (as string) -> that user's welcome answers
    answers: Dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    shared_image_url: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
