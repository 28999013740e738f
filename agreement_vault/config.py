"""Editor settings: field geometry policy, zoom bounds and storage location.

Values can be overridden through environment variables, for example
``AGREEMENT_VAULT_GEOMETRY__MIN_WIDTH=50`` or ``AGREEMENT_VAULT_LOG_LEVEL=DEBUG``.
"""

from __future__ import annotations

from functools import lru_cache
import logging
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class GeometryConfig(BaseModel):
    """Field size policy in canonical units."""

    # Resize floor. Older builders disagreed (30x20 vs 50x20); 30x20 is canonical.
    min_width: float = 30.0
    min_height: float = 20.0
    # Non-checkbox default. Older builders disagreed (120x30 vs 150x30).
    default_width: float = 120.0
    default_height: float = 30.0
    checkbox_size: float = 30.0
    duplicate_offset: float = 12.0
    handle_size: float = 10.0


class ZoomConfig(BaseModel):
    """Page zoom bounds."""

    minimum: float = 0.5
    maximum: float = 2.0
    step: float = 0.1
    initial: float = 1.0


class EditorSettings(BaseSettings):
    """Runtime settings for the template editor."""

    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    zoom: ZoomConfig = Field(default_factory=ZoomConfig)
    storage_dir: Path = Path.home() / ".agreement_vault" / "templates"
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "AGREEMENT_VAULT_",
        "env_nested_delimiter": "__",
    }


@lru_cache(maxsize=1)
def get_settings() -> EditorSettings:
    return EditorSettings()


def reset_settings() -> None:
    get_settings.cache_clear()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or get_settings().log_level, format=LOG_FORMAT)
