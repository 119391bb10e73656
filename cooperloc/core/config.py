"""
CooperLoc - Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import secrets
from pathlib import Path
from dotenv import load_dotenv

# Carrega .env com override para sobrescrever variáveis do sistema
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "CooperLoc Tracker Server"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database (accepts DATABASE_URL or COOPERLOC_DATABASE_URL)
    DATABASE_URL: Optional[str] = None
    COOPERLOC_DATABASE_URL: str = "sqlite+aiosqlite:///./cooperloc.db"

    @property
    def db_url(self) -> str:
        """Returns DATABASE_URL if set, otherwise COOPERLOC_DATABASE_URL"""
        return self.DATABASE_URL or self.COOPERLOC_DATABASE_URL

    # Security
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # Rate limiting (login)
    RATE_LIMIT_ENABLED: bool = True
    SIGN_IN_RATE_LIMIT: str = "10/minute"

    # Admin inicial (POST /api/auth/setup)
    ADMIN_EMAIL: str = "admin@cooperloc.com.br"
    ADMIN_PASSWORD: str = "change-me-in-production"
    ADMIN_NAME: str = "Administrador"

    # CORS
    CORS_ORIGINS: list = ["*"]

    # Email Settings (SMTP)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@cooperloc.com.br"
    SMTP_FROM_NAME: str = "CooperLoc"
    SMTP_TLS: bool = True
    SMTP_SSL: bool = False

    # App URLs
    APP_URL: str = "https://app.cooperloc.com.br"
    RESET_PASSWORD_URL: str = "https://app.cooperloc.com.br/reset-password"

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
