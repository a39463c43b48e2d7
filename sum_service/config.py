from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DURATION_BUCKETS_MS: tuple[float, ...] = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # "route" labels by route template; "raw_uri" keeps the full request URI (unbounded cardinality).
    metrics_path_label: Literal["route", "raw_uri"] = Field(default="route", alias="METRICS_PATH_LABEL")
    duration_buckets_ms: tuple[float, ...] = Field(
        default=DEFAULT_DURATION_BUCKETS_MS,
        alias="DURATION_BUCKETS_MS",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
