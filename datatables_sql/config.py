from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database (demo application)
    database_url: str = "sqlite+aiosqlite:///./customers.db"
    echo: bool = False

    # Logging
    log_level: str = "INFO"
    log_serialize: bool = False

    # Request binding
    default_length: int = 0  # 0 = all rows from start
    max_length: int = 0  # 0 = no cap

    # Query processing
    column_search: bool = False
    concurrent_queries: bool = True

    model_config = SettingsConfigDict(
        env_prefix="DATATABLES_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
