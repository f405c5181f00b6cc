"""Runtime settings read from the environment (and an optional .env file)."""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, List

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class Settings(BaseSettings):
    """Service settings, one ``GOBYTRAIN_*`` variable per field.

    Malformed numbers and booleans fall back to the defaults instead of
    failing start-up. The log level is read by each module logger directly.
    """

    model_config = SettingsConfigDict(
        env_prefix="GOBYTRAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    allowed_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])
    search_latency_ms: int = Field(default=400, description="Simulated search latency")
    strict_stations: bool = Field(default=False, description="Only accept known stations")
    utm_source: str = "gobytrain"
    utm_medium: str = "affiliate"
    utm_campaign: str = "checkout"
    max_sessions: int = Field(default=256, description="Upper bound of live search sessions")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            value = value.split(",")
        origins = [str(origin).strip() for origin in value or [] if str(origin).strip()]
        return origins or ["*"]

    @field_validator("search_latency_ms", "max_sessions", mode="before")
    @classmethod
    def _lenient_int(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            number = int(str(value).strip())
        except ValueError:
            return default
        if info.field_name == "max_sessions":
            return max(1, number)
        return number

    @field_validator("strict_stations", mode="before")
    @classmethod
    def _lenient_bool(cls, value: Any, info: ValidationInfo) -> bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUTHY:
            return True
        if text in _FALSY:
            return False
        return cls.model_fields[info.field_name].default

    @property
    def search_latency_seconds(self) -> float:
        return max(0, self.search_latency_ms) / 1000.0

    @property
    def attribution(self) -> dict[str, str]:
        return {
            "utm_source": self.utm_source,
            "utm_medium": self.utm_medium,
            "utm_campaign": self.utm_campaign,
        }


def load_settings() -> Settings:
    return Settings()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
