"""Configuration management using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database settings
    db_server: str
    db_name: str
    db_user: str
    db_password: str
    db_port: int = 5432
    db_pool_size: int = 10
    db_max_overflow: int = 20
    sql_echo: bool = False

    # Meilisearch settings
    meilisearch_url: str = "http://localhost:7700"
    meilisearch_api_key: str = ""
    meilisearch_timeout: int = 10
    # Index uids are "<prefix><kind plural>", e.g. "tobira_realms"
    meilisearch_index_prefix: str = "tobira_"

    # Search index queue processing
    # Seconds between two runs of the queue drain (measured start to start)
    search_update_interval: float = Field(5.0, ge=0)
    # Maximum number of queue markers handled in one transaction
    search_queue_chunk_size: int = Field(5000, gt=0)

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        """Build PostgreSQL async connection string."""
        from urllib.parse import quote_plus
        return (
            f"postgresql+asyncpg://{self.db_user}:{quote_plus(self.db_password)}"
            f"@{self.db_server}:{self.db_port}/{self.db_name}"
        )

    @property
    def sync_database_url(self) -> str:
        """Build PostgreSQL sync connection string for Alembic."""
        from urllib.parse import quote_plus
        return (
            f"postgresql+psycopg2://{self.db_user}:{quote_plus(self.db_password)}"
            f"@{self.db_server}:{self.db_port}/{self.db_name}"
        )


# Global settings instance
settings = Settings()
