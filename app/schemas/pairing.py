from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Responses and requests use camelCase on the wire, like the mobile client."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileFields(CamelModel):
    nickname: Optional[str] = Field(default=None, max_length=50)
    avatar_id: Optional[str] = Field(default=None, max_length=100)
    gender: Optional[str] = Field(default=None, max_length=20)


class OnboardRequest(ProfileFields):
    relationship_type: Optional[str] = Field(default=None, max_length=50)


class PairRequest(ProfileFields):
    invite_code: str = Field(min_length=1, max_length=32)


class AnswersRequest(CamelModel):
    answers: Dict[str, Any]


class InviteResponse(CamelModel):
    invite_code: str
    invite_link: str
    couple_id: int
    relationship_type: Optional[str] = None


class InvitePreview(CamelModel):
    creator_nickname: Optional[str] = None
    creator_avatar: Optional[str] = None
    relationship_type: Optional[str] = None
    message: str


class PairResult(CamelModel):
    message: str = "Successfully paired!"
    couple_id: int
    relationship_type: Optional[str] = None


class PartnerInfo(CamelModel):
    id: int
    nickname: Optional[str] = None
    avatar_id: Optional[str] = None
    gender: Optional[str] = None


class RelationshipInfo(CamelModel):
    type: Optional[str] = None
    since: datetime
    shared_image: Optional[str] = None


class StatusResponse(CamelModel):
    mode: Literal["solo", "waiting", "couple"]
    partner: Optional[PartnerInfo] = None
    relationship: Optional[RelationshipInfo] = None


class SharedPictureResponse(CamelModel):
    message: str
    url: Optional[str] = None
