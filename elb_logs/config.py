import logging
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    aws_region: str | None = None
    aws_endpoint_url: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_session_token: str | None = None
    s3_addressing_style: Literal["auto", "path", "virtual"] = "auto"
    s3_max_attempts: int = Field(3, ge=1)

    lag_minutes: float = Field(15, ge=0, validation_alias=AliasChoices("ELB_LOGS_LAG_MINUTES", "lag_minutes"))
    lookback_minutes: float = Field(
        20, gt=0, validation_alias=AliasChoices("ELB_LOGS_LOOKBACK_MINUTES", "lookback_minutes")
    )
    max_workers: int = Field(8, ge=1, validation_alias=AliasChoices("ELB_LOGS_MAX_WORKERS", "max_workers"))
    deadline_seconds: float | None = Field(
        None, gt=0, validation_alias=AliasChoices("ELB_LOGS_DEADLINE_SECONDS", "deadline_seconds")
    )

    log_level: str = "INFO"
    metrics_port: int = Field(0, ge=0)

    model_config = SettingsConfigDict(env_file=".env", env_prefix="", case_sensitive=False, extra="ignore")

    @field_validator("log_level")
    def known_log_level(cls, v: str) -> str:
        v = v.upper()
        if not isinstance(logging.getLevelName(v), int):
            raise ValueError(f"unknown log level {v!r}")
        return v

    @model_validator(mode="after")
    def check_window(self):
        if self.lookback_minutes <= self.lag_minutes:
            raise ValueError("lookback_minutes must be greater than lag_minutes")
        return self


def load_settings(**overrides) -> Settings:
    """Resolve settings once; explicit overrides (e.g. CLI flags) win over the environment."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
