"""
VitrineTurbo - Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional, List
from pathlib import Path
from dotenv import load_dotenv

# Carrega .env com override para sobrescrever variáveis do sistema
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "VitrineTurbo"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database (accepts DATABASE_URL or VITRINE_DATABASE_URL)
    DATABASE_URL: Optional[str] = None
    VITRINE_DATABASE_URL: str = "sqlite+aiosqlite:///./vitrineturbo.db"

    @property
    def db_url(self) -> str:
        """Returns DATABASE_URL if set, otherwise VITRINE_DATABASE_URL"""
        return self.DATABASE_URL or self.VITRINE_DATABASE_URL

    # Sessão
    SESSION_DURATION_DAYS: int = 7
    SESSION_CHECK_INTERVAL_SECONDS: int = 30
    SESSION_STORAGE_PATH: Optional[str] = None  # None = memória
    STORAGE_KEY_PREFIX: str = "vitrineturbo"

    # Vitrine pública
    PUBLIC_SITE_URL: str = "https://vitrineturbo.com"
    PRODUCTION_HOSTNAMES: List[str] = ["vitrineturbo.com"]
    PRODUCTION_HOST_SUFFIXES: List[str] = ["netlify.app", "vercel.app"]
    WHATSAPP_COUNTRY_CODE: str = "55"

    # Indicações
    MIN_WITHDRAWAL_AMOUNT: float = 50.0

    # Admin
    ADMIN_EMAIL: str = "admin@vitrineturbo.com"
    ADMIN_PASSWORD: str = "change-me-in-production"

    # CORS
    CORS_ORIGINS: list = ["*"]

    # CLI
    API_URL: str = "http://localhost:8080"
    CLI_SESSION_FILE: str = ".vitrineturbo_session.json"

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
