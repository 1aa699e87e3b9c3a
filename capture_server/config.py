from pathlib import Path
from typing import Annotated, Any, List
import json
import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .services import DEFAULT_TOPIC, validate_topic
from .store import DEFAULT_EXTENSION, DEFAULT_HEADING

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "capture-server"
    app_version: str = "0.1.0"

    # Storage
    captures_dir: Path = Field(
        default=Path("~/projects/personal-notes/captures"),
        alias="JSON_SERVER_DIR",
    )
    default_topic: str = Field(
        default=DEFAULT_TOPIC,
        alias="CAPTURE_DEFAULT_TOPIC",
    )
    extension: str = Field(
        default=DEFAULT_EXTENSION,
        alias="CAPTURE_EXTENSION",
    )
    heading: str = Field(
        default=DEFAULT_HEADING,
        alias="CAPTURE_HEADING",
    )

    # Fingerprints use insertion order unless this is set
    sort_keys: bool = Field(
        default=False,
        alias="CAPTURE_SORT_KEYS",
    )

    # HTTP
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=51741, alias="PORT")
    # Comma separated in the environment, e.g. "http://localhost:3000,https://notes.example"
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        alias="CAPTURE_CORS_ORIGINS",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("captures_dir")
    @classmethod
    def expand_captures_dir(cls, v: Path) -> Path:
        return Path(v).expanduser()

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith(".") or "/" in v:
            raise ValueError("Extension must start with '.' and contain no '/'")
        return v

    @field_validator("default_topic")
    @classmethod
    def validate_default_topic(cls, v: str) -> str:
        return validate_topic(v)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().startswith("["):
            return json.loads(v)
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        return v.strip().upper()


def get_settings() -> Settings:
    settings = Settings()
    logger.debug("Capture settings loaded: %s", settings.model_dump())
    return settings


__all__ = ["Settings", "get_settings"]
