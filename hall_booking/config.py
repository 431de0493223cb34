# hall_booking/config.py
from typing import Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # SQLite has no row locks: run a single worker against it, or bookings may double up
    DATABASE_URL: str
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: float = 60 * 24  # supports decimal durations

    # SMTP is optional; without it notifications are only logged
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_EMAIL: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    MAIL_FROM_NAME: str = "Hall Booking System"

    FRONTEND_BASE_URL: str = "http://localhost:5173"

    LOG_LEVEL: str = "INFO"
    NOTIFY_MAX_ATTEMPTS: int = 3
    NOTIFY_RETRY_DELAY_SECONDS: float = 2.0
    AUTO_CREATE_TABLES: bool = True

    class Config:
        env_file = ".env"

settings = Settings()
