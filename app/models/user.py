from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    # None for accounts created through Google SSO
    hashed_password: Optional[str] = None
    full_name: Optional[str] = None
    picture: Optional[str] = None

    # Profile, filled in during onboarding / pairing
    nickname: Optional[str] = None
    avatar_id: Optional[str] = None
    gender: Optional[str] = None

    # Pairing
    couple_id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            Integer,
            # user <-> couple is a cycle, created with ALTER where supported
            ForeignKey("couple.id", ondelete="SET NULL", use_alter=True, name="fk_user_couple_id"),
            nullable=True,
            index=True,
        ),
    )
    onboarded: bool = False

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
