from pydantic_settings import BaseSettings
from typing import Optional



class Settings(BaseSettings):
    PROJECT_NAME: str = "Forum"
    DEBUG: bool = False

    DATABASE_URL: str = "sqlite+aiosqlite:///./forum.db"
    DB_ECHO: bool = False

    SESSION_COOKIE_NAME: str = "forum_session"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_MAX_AGE_DAYS: int = 7

    PASSWORD_HASH_SCHEME: str = "pbkdf2_sha256"
    PASSWORD_HASH_ROUNDS: Optional[int] = None

    UPLOAD_DIR: str = "public/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@lrms.edu"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env"


settings = Settings()
