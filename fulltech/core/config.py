from functools import lru_cache
from pathlib import Path
from typing import List
from urllib.parse import urlparse
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), case_sensitive=False)

    APP_NAME: str = "FULLTECH Backend"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_PREFIX: str = "/api"
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000

    DATABASE_URL: str = "sqlite:///./fulltech.db"

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 90

    CORS_ORIGINS: str = (
        "http://localhost:5173,"
        "http://127.0.0.1:5173,"
        "http://localhost:5000"
    )

    REFERRAL_CODE_PREFIX: str = "FT"
    REFERRAL_DISCOUNT_PERCENT: int = 5
    # Off by default: the storefront only records the qualification, the
    # discount credit is left to a separate payout process.
    REFERRAL_PERSIST_DISCOUNT: bool = False

    SEED_ADMIN_EMAIL: str = "admin@fulltech.local"
    SEED_ADMIN_PASSWORD: str = "Password123!"

    @property
    def cors_origins(self) -> List[str]:
        origins: list[str] = []
        for raw in self.CORS_ORIGINS.split(","):
            value = raw.strip()
            if not value:
                continue
            parsed = urlparse(value)
            if parsed.scheme and parsed.netloc:
                value = f"{parsed.scheme}://{parsed.netloc}"
            origins.append(value.rstrip("/"))
        return origins


@lru_cache
def get_settings() -> Settings:
    return Settings()
