from decimal import Decimal
from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "Commission Pro"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True

    # ── Logging ─────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "commission_pro.log"
    LOG_MAX_BYTES: int = 10_000_000
    LOG_BACKUP_COUNT: int = 5

    # ── Database ────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./commission_pro.db"
    SQLITE_BUSY_TIMEOUT_MS: int = 10000

    # ── JWT / Auth ──────────────────────────────
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    ALGORITHM: str = "HS256"
    # Seeded at startup when both are set
    OWNER_EMAIL: Optional[str] = None
    OWNER_USERNAME: str = "owner"
    OWNER_PASSWORD: Optional[str] = None

    # ── Webhooks ────────────────────────────────
    # Shared secret; a per-platform entry in WEBHOOK_SECRETS takes precedence
    WEBHOOK_SECRET: Optional[str] = None
    WEBHOOK_SECRETS: Dict[str, str] = {}
    WEBHOOK_SIGNATURE_HEADER: str = "x-signature"

    # ── Affiliate programme ─────────────────────
    AFFILIATE_TRACKING_ID: str = "commissionpro-20"
    # Smallest amount a user may withdraw; 0 disables the floor
    MIN_WITHDRAWAL: Decimal = Decimal("0")
    CURRENCY: str = "USD"

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    def webhook_secret_for(self, platform: str) -> Optional[str]:
        return self.WEBHOOK_SECRETS.get(platform.lower()) or self.WEBHOOK_SECRET


settings = Settings()
