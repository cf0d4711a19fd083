# core/settings.py
from pathlib import Path

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Frontend
    FRONTEND_ORIGIN: str = "http://localhost:3000"
    UVICORN_MODE: str = "development"

    # Database
    DATABASE_FOLDER: str = "database"
    DATABASE_URL: str = "sqlite:///database/portfolio.db"

    # Logging
    LOG_DIR: str = "logs"

    # Token
    TOKEN_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ACCESS_TOKEN_SECRET_KEY: str
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    REFRESH_TOKEN_SECRET_KEY: str

    # Site defaults
    SITE_NAME: str = "jlowe.ai"

    class Config:
        env_file = Path(__file__).resolve().parent.parent.parent / ".env"
        case_sensitive = True
        extra = "allow"

settings = Settings()
