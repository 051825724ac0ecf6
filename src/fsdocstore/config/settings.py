from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# --- Per-collection settings ---
class CollectionSettings(BaseModel):
    # None => unbounded; 0 => collection stores nothing
    max_documents: int | None = Field(default=None, ge=0)


# --- Logging ---
class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_logs: bool = False
    # file logging is off unless a directory is given
    log_dir: str | None = None


class StoreSettings(BaseSettings):
    """
    Process-wide store settings.

    Env vars use the FSDOCSTORE_ prefix and "__" for nesting, e.g.
      FSDOCSTORE_ROOT=./data
      FSDOCSTORE_DEFAULT_MAX_DOCUMENTS=500
      FSDOCSTORE_COLLECTIONS__SESSIONS__MAX_DOCUMENTS=100
      FSDOCSTORE_LOGGING__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="FSDOCSTORE_",
        env_nested_delimiter="__",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    root: str = "./fsdocstore_data"
    default_max_documents: int | None = Field(default=None, ge=0)
    collections: dict[str, CollectionSettings] = Field(default_factory=dict)
    logging: LoggingSettings = LoggingSettings()
