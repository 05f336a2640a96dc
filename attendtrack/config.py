from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "attendtrack"
    SECRET_KEY: str = "dev-secret-key-change-me"
    DATABASE_URL: str = "sqlite:///attendtrack.db"
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    SESSION_COOKIE_NAME: str = "attendtrack_session"
    SESSION_MAX_AGE: int = 24 * 60 * 60  # one day
    SESSION_COOKIE_SECURE: bool = False
    SESSION_COOKIE_SAMESITE: str = "lax"

    # Check-in and gamification rules
    LATE_GRACE_MINUTES: int = 15
    ATTENDANCE_POINTS: int = 10
    STREAK_BONUS_POINTS: int = 5
    ENFORCE_SESSION_END_TIME: bool = False
    SINGLE_ACTIVE_SESSION_PER_TEACHER: bool = False

    # TTF used for PDF exports; Helvetica has no Cyrillic glyphs
    PDF_FONT_PATH: Optional[str] = None

    SEED_DEMO_ACCOUNTS: bool = False

settings = Settings()
