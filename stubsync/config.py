"""Server settings and stubs configuration loading."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigurationError
from .models.config import StubsConfiguration, default_configuration

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Server settings, read from ``STUBSYNC_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="STUBSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Documents
    docs_root: Path = Path(".")
    stubs_config_path: Path | None = None

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS - comma-separated list of allowed origins
    cors_allowed_origins: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_allowed_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]


settings = Settings()


# ============ STUBS CONFIGURATION ============


def _merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``overrides`` into ``defaults`` (mappings only; lists replace)."""
    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_stubs_configuration(path: str | Path) -> StubsConfiguration:
    """Load a stubs configuration YAML file.

    Sections the file omits keep their defaults. Stub types and properties
    given in the file are merged over the default vocabulary by id.

    Raises:
        ConfigurationError: If the file cannot be read, is not YAML, or does
            not validate
    """
    path = Path(path)
    yaml = YAML(typ="safe", pure=True)

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read stubs configuration {path}: {e}") from e
    except YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in stubs configuration {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Stubs configuration {path} must be a mapping")

    merged = _merge(default_configuration().model_dump(), data)
    # New types and properties may omit id / key / display_name
    for section in ("stub_types", "structured_properties"):
        entries = merged.get(section)
        if not isinstance(entries, dict):
            continue
        for item_id, item in entries.items():
            if isinstance(item, dict):
                item.setdefault("id", item_id)
                item.setdefault("key", item_id)
                item.setdefault("display_name", str(item_id).replace("_", " ").title())

    try:
        config = StubsConfiguration.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid stubs configuration {path}: {e}") from e

    logger.info(
        f"Loaded stubs configuration from {path}: "
        f"{len(config.stub_types)} types, {len(config.structured_properties)} properties"
    )
    return config


@lru_cache(maxsize=1)
def get_stubs_configuration() -> StubsConfiguration:
    """Stubs configuration for the server (file when configured, defaults otherwise)."""
    if settings.stubs_config_path is None:
        return default_configuration()
    return load_stubs_configuration(settings.stubs_config_path)
