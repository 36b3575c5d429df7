from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: Optional[str] = Field(default=None, max_length=100)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: Optional[str] = None
    picture: Optional[str] = None
    nickname: Optional[str] = None
    avatar_id: Optional[str] = None
    gender: Optional[str] = None
    couple_id: Optional[int] = None
    onboarded: bool = False
    created_at: datetime


class UserMe(UserPublic):
    couple_status: Optional[str] = None


class GoogleTokenLogin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id_token: str = Field(alias="idToken", min_length=1)
