from pydantic_settings import BaseSettings
from typing import List, Optional

DEFAULT_SECRET_KEY = "secret-key"


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000
    CORS_ORIGINS: List[str] = ["*"]

    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "EMS_db_mock"

    SECRET_KEY: str = DEFAULT_SECRET_KEY
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    # First admin account, seeded by ems-create-admin
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    class Config:
        env_file = ".env"


settings = Settings()


def validate_runtime_config() -> None:
    if settings.APP_ENV.lower() == "production" and settings.SECRET_KEY == DEFAULT_SECRET_KEY:
        raise RuntimeError("SECRET_KEY must be set in production.")
