"""Exception hierarchy for locating, loading and persisting client credentials."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ApiClientError(Exception):
    """Base exception for credential configuration failures."""


class ConfigurationNotFound(ApiClientError):
    """Raised when the configuration file cannot be located.

    ``searched`` holds the directory (or explicit override path) that was
    inspected so the deployment can be fixed.
    """

    def __init__(self, message: str, *, searched: Optional[Path] = None) -> None:
        super().__init__(message)
        self.searched = searched


class ConfigurationLoadError(ApiClientError):
    """Raised when the configuration file exists but cannot be read or parsed."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class InvalidCredentialValue(ConfigurationLoadError):
    """Raised when a stored value is present but cannot be decoded."""

    def __init__(self, message: str, *, key: str, value: str, path: Optional[Path] = None) -> None:
        super().__init__(message, path=path)
        self.key = key
        self.value = value


class PersistenceError(ApiClientError):
    """Raised when the in-memory document cannot be written back to disk."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


__all__ = [
    "ApiClientError",
    "ConfigurationNotFound",
    "ConfigurationLoadError",
    "InvalidCredentialValue",
    "PersistenceError",
]
