from typing import Any

from fastapi import APIRouter

from app.api import deps
from app.schemas.msg import Msg
from app.schemas.pairing import (
    AnswersRequest,
    InvitePreview,
    InviteResponse,
    OnboardRequest,
    PairRequest,
    PairResult,
)

router = APIRouter()


@router.post("/onboard", response_model=InviteResponse)
def onboard_creator(
    service: deps.PairingServiceDep,
    current_user: deps.CurrentUser,
    body: OnboardRequest,
) -> Any:
    """
    Save the creator's profile and open an invite for their partner.
    """
    return service.create_invite(current_user.id, body, body.relationship_type)


@router.get("/invite", response_model=InviteResponse)
def get_invite_details(
    service: deps.PairingServiceDep,
    current_user: deps.CurrentUser,
) -> Any:
    """
    The caller's own open invite, for re-sharing.
    """
    return service.get_invite_details(current_user.id)


@router.get("/invites/{code}/preview", response_model=InvitePreview)
def preview_invite(code: str, service: deps.PairingServiceDep) -> Any:
    """
    Public preview of who sent an invite. No authentication.
    """
    return service.preview_invite(code)


@router.post("/pair", response_model=PairResult)
def pair_users(
    service: deps.PairingServiceDep,
    current_user: deps.CurrentUser,
    body: PairRequest,
) -> Any:
    """
    Join the couple behind an invite code.
    """
    return service.pair(current_user.id, body.invite_code, body)


@router.post("/unlink", response_model=Msg)
def unlink_couple(
    service: deps.PairingServiceDep,
    current_user: deps.CurrentUser,
) -> Any:
    """
    Dissolve the couple for both partners.
    """
    service.unlink(current_user.id)
    return {"message": "Unlinked successfully. You are now in Solo Mode."}


@router.post("/answers", response_model=Msg)
def submit_welcome_answers(
    service: deps.PairingServiceDep,
    current_user: deps.CurrentUser,
    body: AnswersRequest,
) -> Any:
    service.submit_answers(current_user.id, body.answers)
    return {"message": "Answers saved!"}
