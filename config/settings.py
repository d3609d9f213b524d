from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database (required; e.g. postgresql+asyncpg://... or sqlite+aiosqlite:///...)
    database_url: str = ""
    db_pool_size: int = 20
    db_pool_timeout: float = 10.0
    db_pool_recycle: int = 1800
    db_echo: bool = False

    # Auth provider (Supabase)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    auth_timeout: float = 10.0

    # Shared secret for /api/cron/* (Authorization: Bearer <secret>)
    cron_secret: str = ""

    # Recurring task refresh
    scheduler_enabled: bool = True
    refresh_timezone: str = "Asia/Singapore"
    refresh_hour: int = 7
    refresh_minute: int = 0
    completed_retention_days: int = 7

    # HTTP
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 5000

    # Logging
    log_dir: Path = BASE_DIR / "logs"
    log_level: str = "INFO"


settings = Settings()
