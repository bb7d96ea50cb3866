"""Service configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="AIO_",
        env_file=".env",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # API settings
    api_key: Optional[str] = None  # If set, require Bearer token on mutating endpoints

    # Database settings
    database_url: Optional[str] = None  # Default: sqlite+aiosqlite:///./aio_jobs.db
    database_echo: bool = False  # Enable SQL query logging for debugging

    # Queue settings
    default_priority: int = 5  # 1-10, higher drains first
    default_max_retries: int = 3
    max_source_text_length: int = 20000
    default_source_lang: str = "ja"  # Source language assumed by bulk enqueue

    # Drain settings
    drain_batch_size: int = 10  # Jobs claimed per drain invocation
    retry_base_delay_seconds: float = 1.0  # Backoff doubles per retry
    provider_timeout_seconds: float = 60.0  # A timed-out call counts as a failure

    # Embedding chunking
    chunk_size: int = 1000
    chunk_overlap: int = 100

    # OpenAI provider settings
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    translation_model: str = "gpt-4"
    translation_temperature: float = 0.3
    embedding_model: str = "text-embedding-3-small"

    # Request performance buffer
    performance_buffer_size: int = 500


settings = Settings()
