import os
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()

class Settings:
    # Environment setting
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # db creds
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    DB_NAME = os.getenv("DB_NAME", "postgres")
    DB_PORT = os.getenv("DB_PORT", "5432")

    # Full URL override (e.g. sqlite+aiosqlite for local runs and tests)
    DATABASE_URL_OVERRIDE = os.getenv("DATABASE_URL")

    # Stage change webhook (n8n / Discord relay)
    NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL")
    NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "10"))
    DEFAULT_DISCORD_CHANNEL = os.getenv("DEFAULT_DISCORD_CHANNEL", "#aceleradora")

    # Accelerator program shape
    PROGRAM_LENGTH_DAYS = int(os.getenv("PROGRAM_LENGTH_DAYS", "120"))
    STAGE_LENGTH_DAYS = int(os.getenv("STAGE_LENGTH_DAYS", "30"))

    # How long a pending checklist completion holds its lease
    CHECKLIST_EDIT_LEASE_SECONDS = int(os.getenv("CHECKLIST_EDIT_LEASE_SECONDS", "900"))

    # Build URL with SSL requirement based on environment
    def _build_database_url(self):
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        base_url = f"postgresql+asyncpg://{self.DB_USER}:{quote_plus(self.DB_PASSWORD)}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        if self.ENVIRONMENT == "development":
            return base_url
        return f"{base_url}?ssl=require"

    @property
    def DATABASE_URL(self):
        return self._build_database_url()

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

settings = Settings()
