from fastapi import APIRouter

api_router = APIRouter()

from app.api.v1 import auth, media, pairings, users

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(pairings.router, prefix="/pairings", tags=["pairings"])
api_router.include_router(media.router, prefix="/shared-picture", tags=["media"])

@api_router.get("/")
def root():
    return {"status": "active"}
