import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

from app.api.error_handlers import register_error_handlers
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.db import engine
from app.core.logging import setup_logging
# Import models to register them
from app.models.couple import Couple
from app.models.user import User

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    SQLModel.metadata.create_all(engine)
    logger.info(f"{settings.PROJECT_NAME} started")
    yield
    engine.dispose()
    logger.info(f"{settings.PROJECT_NAME} shutting down")

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_error_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)
