from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Where HTML documents and their assets are placed by the uploader
    content_dir: Path = Path("uploads")
    # One SQLite file per analysed document
    database_dir: Path = Path("databases")

    # <base href> injected into previews so relative assets load from the content dir
    preview_base_href: str = "/uploads/"

    schema_cache_ttl: float = 300.0  # seconds
    schema_cache_size: int = 64

    model_config = SettingsConfigDict(
        env_prefix="CONTENTLY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
