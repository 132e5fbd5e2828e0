from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from models import StoreMode

DEFAULT_DB_PATH = Path(__file__).parent / "data" / "quiz.db"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VOCAB_QUIZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = "http://localhost:4000/api"
    auth_token: str | None = None
    request_timeout_seconds: float = 15.0

    # guest => local SQLite history, authenticated => remote history service
    mode: StoreMode = StoreMode.GUEST
    db_path: Path = DEFAULT_DB_PATH
    max_guest_history: int = 20

    poll_interval_seconds: float = 4.0
    warning_ttl_seconds: float = 4.0

    log_level: str = "INFO"


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings
