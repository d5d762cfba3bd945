# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./storefront.db"

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # Cost factor for bcrypt password hashes
    BCRYPT_ROUNDS: int = 12

    # When enabled, checkout ignores the client-submitted total and sums cart prices
    CHECKOUT_RECOMPUTE_TOTAL: bool = False

    # Persist audit events to the audit_events table (log lines are always emitted)
    AUDIT_PERSIST: bool = True

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()
