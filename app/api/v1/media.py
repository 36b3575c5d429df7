from typing import Any

from fastapi import APIRouter, File, UploadFile

from app.api import deps
from app.schemas.pairing import SharedPictureResponse

router = APIRouter()


@router.put("", response_model=SharedPictureResponse)
def upsert_shared_picture(
    service: deps.SharedPictureServiceDep,
    current_user: deps.CurrentUser,
    image: UploadFile = File(...),
) -> Any:
    """
    Replace the couple's shared picture.
    """
    # one byte past the limit is enough to reject it
    data = image.file.read(service.max_bytes + 1)
    url = service.set_picture(current_user.id, data, image.content_type or "")
    return {"message": "Shared picture synced successfully!", "url": url}


@router.delete("", response_model=SharedPictureResponse)
def delete_shared_picture(
    service: deps.SharedPictureServiceDep,
    current_user: deps.CurrentUser,
) -> Any:
    service.delete_picture(current_user.id)
    return {"message": "Shared photo removed!"}
