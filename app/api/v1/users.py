from typing import Any

from fastapi import APIRouter

from app.api import deps
from app.models.couple import Couple
from app.schemas.pairing import StatusResponse
from app.schemas.user import UserMe

router = APIRouter()


@router.get("/me", response_model=UserMe)
def read_me(session: deps.SessionDep, current_user: deps.CurrentUser) -> Any:
    """
    The caller's account, with the status of their couple if they have one.
    """
    couple = session.get(Couple, current_user.couple_id) if current_user.couple_id else None
    me = UserMe.model_validate(current_user)
    me.couple_status = couple.status if couple else None
    return me


@router.get("/me/status", response_model=StatusResponse)
def read_status(service: deps.PairingServiceDep, current_user: deps.CurrentUser) -> Any:
    """
    Solo / waiting / couple view used by the dashboard.
    """
    return service.get_status(current_user.id)
