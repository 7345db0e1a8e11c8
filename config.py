import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        secret_key: str,
        token_max_age_hours: int,
        debug: bool,
        default_page_size: int,
        max_page_size: int,
        cors_origins: list[str],
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.secret_key = secret_key
        self.token_max_age_hours = token_max_age_hours
        self.debug = debug
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.cors_origins = cors_origins
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("ACCOUNTS_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "accounts.db"
    database_url = os.getenv("ACCOUNTS_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("ACCOUNTS_TIMEZONE", "UTC")
    secret_key = os.getenv(
        "ACCOUNTS_SECRET_KEY",
        "5c1f0e9b7a3d4e2f8b6a9c0d1e2f3a4b5c6d7e8f9a0b1c2d3e4f5a6b7c8d9e0f",
    )
    token_max_age_hours = int(os.getenv("ACCOUNTS_TOKEN_MAX_AGE_HOURS", "24"))
    debug = _env_flag("ACCOUNTS_DEBUG")
    default_page_size = int(os.getenv("ACCOUNTS_DEFAULT_PAGE_SIZE", "10"))
    max_page_size = int(os.getenv("ACCOUNTS_MAX_PAGE_SIZE", "100"))
    cors_origins = [
        origin.strip()
        for origin in os.getenv("ACCOUNTS_CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]
    log_level = os.getenv("ACCOUNTS_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        secret_key=secret_key,
        token_max_age_hours=token_max_age_hours,
        debug=debug,
        default_page_size=default_page_size,
        max_page_size=max_page_size,
        cors_origins=cors_origins,
        log_level=log_level,
    )
