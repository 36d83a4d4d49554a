from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

LOG_LEVELS = ["critical", "error", "warning", "info", "debug", "trace"]


class Settings(BaseModel):
    """Runtime settings for the CLI and the web surface."""

    host: str = Field("127.0.0.1", description="Bind address")
    port: int = Field(8050, ge=1, le=65535)
    log_level: str = Field("info", description="Logging / uvicorn log level")
    max_horizon_months: int = Field(600, ge=0, description="Largest horizon the web surface will compute")
    round_digits: int = Field(2, ge=0, le=12, description="Decimal places of engine output")

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}; got {value!r}")
        return value


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from TOKENVEST_* environment variables."""
    env = os.environ if environ is None else environ
    values = {
        "host": env.get("TOKENVEST_HOST"),
        "port": env.get("TOKENVEST_PORT"),
        "log_level": env.get("TOKENVEST_LOG_LEVEL"),
        "max_horizon_months": env.get("TOKENVEST_MAX_HORIZON_MONTHS"),
        "round_digits": env.get("TOKENVEST_ROUND_DIGITS"),
    }
    return Settings(**{k: v for k, v in values.items() if v not in (None, "")})
