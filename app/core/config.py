from typing import List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "TwoFold API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    # 30 days, sessions are long-lived on mobile
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30
    BACKEND_CORS_ORIGINS: Union[List[str], str] = []

    # Database
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///twofold.db"

    # Auth
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    SSO_CALLBACK_URL: str = "http://localhost:8000/api/v1/auth/callback/google"

    # Pairing
    FRONTEND_URL: str = "http://localhost:3000"
    INVITE_CODE_LENGTH: int = 6
    INVITE_CODE_MAX_ATTEMPTS: int = 5

    # Media
    CLOUDINARY_CLOUD_NAME: str | None = None
    CLOUDINARY_API_KEY: str | None = None
    CLOUDINARY_API_SECRET: str | None = None
    MEDIA_FOLDER: str = "twofold_shared"
    MEDIA_TIMEOUT_SECONDS: float = 10.0
    MEDIA_MAX_BYTES: int = 10 * 1024 * 1024

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"


    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("FRONTEND_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, env_ignore_empty=True, extra="ignore"
    )

settings = Settings()
