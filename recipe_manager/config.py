from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import BeforeValidator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def parse_list(v):
    """Accept a comma-separated string or a list."""
    if isinstance(v, str):
        return [x.strip() for x in v.split(",") if x.strip()]
    return v


class Settings(BaseSettings):
    """Runtime settings, read from RECIPE_MANAGER_* env vars or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="RECIPE_MANAGER_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = "sqlite:///./recipe_manager.db"
    uploads_dir: Path = Path("uploads")
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"
    cors_origins: Annotated[List[str], NoDecode, BeforeValidator(parse_list)] = ["*"]
    host: str = "127.0.0.1"
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
