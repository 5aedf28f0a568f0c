# rentalcrm/core/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    APP_VERSION: str = "1.0.0"

    MONGO_URL: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "rental_crm"
    MONGO_TLS: bool = False

    JWT_SECRET_KEY: str = "change-this-secret-in-production-0123456789"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    COOKIE_SECURE: bool = False
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    SMTP_SERVER: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    MAIL_FROM_NAME: str = "BookFlyDriveStay"

    OTP_DIGITS: int = 6
    OTP_EXPIRE_MINUTES: int = 10

    TENANT_TRIAL_DAYS: int = 14


settings = Settings()
