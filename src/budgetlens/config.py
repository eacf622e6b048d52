from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        env_prefix="BUDGETLENS_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    # Local store (single user, single process)
    database_url: str = "sqlite+aiosqlite:///./budgetlens.db"
    db_echo: bool = False

    # Categorization
    fallback_category: str = "other"
    patterns_file: str | None = None

    # Rule learning
    learned_rule_priority: int = 100
    max_keywords: int = 3


settings = Settings()
