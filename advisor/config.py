"""Advisor configuration pulled from environment variables via pydantic."""
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the activity advisor."""
    model_config = SettingsConfigDict(env_prefix="ADVISOR_", extra="ignore")

    api_key: str | None = None
    log_level: str = "INFO"
    # "invocation": timing suggestions are offset from now; "forecast": keep the window's own times
    watering_window_timing: Literal["invocation", "forecast"] = "invocation"
    max_watering_windows: int = 5
    max_stress_warnings: int = 10
    max_comfort_periods: int = 5
    timing_suggestion_windows: int = 3

    @field_validator("log_level", mode="after")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        return str(v).strip().upper()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
