"""
Centralised config for the API client credential store.

Values are read from environment variables (and an optional ``.env`` file)
and exposed through a singleton ``settings`` object. Nothing here is
required, so importing the package never fails on a bare environment.
"""

import os
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE = Path(__file__).resolve()


def _discover_project_root(config_file: Path) -> tuple[Path, Path]:
    """Return a project root and env file path without assuming ``.env`` exists.

    Walk the parents looking for a ``.env`` file and fall back to the
    repository root (detected via common project markers) when it is missing.
    """

    parents = list(config_file.parents)

    for parent in parents:
        env_file = parent / ".env"
        if env_file.exists():
            return parent, env_file

    for marker in ("pyproject.toml", ".git"):
        for parent in parents:
            if (parent / marker).exists():
                return parent, parent / ".env"

    fallback_root = parents[1] if len(parents) > 1 else parents[0]
    return fallback_root, fallback_root / ".env"


PROJECT_ROOT, ENV_FILE_PATH = _discover_project_root(CONFIG_FILE)


T = TypeVar("T")


class Settings(BaseSettings):
    """
    Validated settings for locating and persisting API client credentials.
    """
    model_config = SettingsConfigDict(
        env_file=ENV_FILE_PATH, env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # --- CONFIG FILE LOCATION ---
    APICLIENT_CONFIG_PATH: Optional[Path] = None
    APICLIENT_CONFIG_FILE_NAME: str = "apiclient.config"
    APICLIENT_KEY_PREFIX: str = "ApiClient."

    # --- LOGGING ---
    APICLIENT_LOG_LEVEL: str = "INFO"
    APICLIENT_LOG_TO_CONSOLE: bool = True
    APICLIENT_LOG_PATH: Optional[Path] = None

    # --- TOKEN LIFECYCLE ---
    TOKEN_EXPIRY_LEEWAY_SECONDS: int = Field(60, ge=0)

    @property
    def log_path(self) -> Path:
        """
        Path for the credential store log file.

        Uses ``APICLIENT_LOG_PATH`` when provided, otherwise a per-user
        directory under the home folder.
        """
        if self.APICLIENT_LOG_PATH is not None:
            return Path(self.APICLIENT_LOG_PATH).expanduser()
        return Path.home() / ".apiclient" / "logs" / "apiclient.log"


# Create a single, importable instance of the settings for the entire package.
settings = Settings()


def _to_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _coerce_type(raw: str, template: Any) -> Any:
    if isinstance(template, bool):
        return _to_bool(raw)
    if isinstance(template, int) and not isinstance(template, bool):
        return int(raw)
    if isinstance(template, float):
        return float(raw)
    if isinstance(template, Path):
        return Path(raw)
    return raw


def get_env(
    name: str,
    default: T | None = None,
    *,
    parser: Callable[[str], T] | None = None,
) -> T | Any | None:
    """Return a configuration value resolving environment overrides consistently.

    The resolution order is:

    1. Explicit environment variable overrides at runtime.
    2. Typed values provided by the ``settings`` object.
    3. The supplied ``default`` value.

    When an override is read directly from :mod:`os.environ`, ``parser`` (or the
    inferred type from ``settings``) is used to coerce the string into the
    expected type.
    """

    if name in os.environ:
        raw_value = os.environ[name]
        if parser is not None:
            return parser(raw_value)
        if hasattr(settings, name):
            template = getattr(settings, name)
            try:
                return _coerce_type(raw_value, template)
            except (TypeError, ValueError):
                return template
        return raw_value

    if hasattr(settings, name):
        value = getattr(settings, name)
        if value is not None:
            return value

    return default
