import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Dispatch Admin"
    DEBUG: bool = False
    TESTING: bool = False
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Database settings
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", "sqlite+aiosqlite:///./dispatch.db"
    )
    AUTO_CREATE_TABLES: bool = False

    # Database connection settings
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # JWT settings
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # LOGFIRE / SENTRY
    LOGFIRE_TOKEN: str | None = os.getenv("LOGFIRE_TOKEN")
    SENTRY_DSN: str | None = os.getenv("SENTRY_DSN")

    # Logging
    LOG_DIR: str = str(Path(__file__).parent.parent.parent / "logs")

    # CORS
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:3000")

    # Dispatch rules
    ENFORCE_RIDER_CAPACITY: bool = False
    NEARBY_DEFAULT_DISTANCE: float = 5000
    NEARBY_RESULT_LIMIT: int = 10
    ORDER_NUMBER_PREFIX: str = "ORD-"


settings = Settings()
