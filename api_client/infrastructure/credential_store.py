"""Process-wide credential store backed by the configuration file.

The store is created lazily by :func:`get_credential_store`: the first
caller resolves the file location, loads the document and every later
caller (from any thread) receives that same instance. Reads, writes and
``save`` are serialised by one re-entrant lock; :meth:`CredentialStore.batch`
holds that lock across several calls so a multi-field update is never
interleaved with another writer.

Only threads inside this process are coordinated. Two processes writing the
same file can still overwrite each other's changes.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Mapping, Optional

from api_client.application.exceptions import (
    ApiClientError,
    ConfigurationLoadError,
    InvalidCredentialValue,
    PersistenceError,
)
from api_client.config import settings
from api_client.domain.attribute_document import AttributeDocument, DocumentLoader
from api_client.infrastructure.config_locator import ConfigLocator, get_config_locator
from api_client.infrastructure.log_utils import log_message
from api_client.infrastructure.xml_attribute_document import XmlAttributeDocument
from api_client.utils.converters import MIN_INSTANT, as_aware, format_roundtrip, parse_roundtrip

CLIENT_ID = "ClientId"
CLIENT_SECRET = "ClientSecret"
REDIRECT_URI = "RedirectUri"
ACCESS_TOKEN = "AccessToken"
REFRESH_TOKEN = "RefreshToken"
EXPIRATION_DATETIME = "ExpirationDateTime"

FIELD_NAMES = (
    CLIENT_ID,
    CLIENT_SECRET,
    REDIRECT_URI,
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    EXPIRATION_DATETIME,
)


def _text_property(name: str, doc: str) -> property:
    def getter(self: "CredentialStore") -> str:
        return self.get(self.key_for(name))

    def setter(self: "CredentialStore", value: Optional[str]) -> None:
        self.set(self.key_for(name), value)

    return property(getter, setter, doc=doc)


class CredentialStore:
    """Typed accessors over the attribute document holding client credentials."""

    def __init__(
        self,
        document: AttributeDocument,
        config_path: Path,
        *,
        key_prefix: Optional[str] = None,
    ) -> None:
        self._document = document
        self._config_path = Path(config_path)
        self._key_prefix = settings.APICLIENT_KEY_PREFIX if key_prefix is None else key_prefix
        self._lock = threading.RLock()

    @classmethod
    def open(
        cls,
        config_path: Path,
        *,
        document_loader: DocumentLoader = XmlAttributeDocument.load,
        key_prefix: Optional[str] = None,
    ) -> "CredentialStore":
        """Load ``config_path`` into a new store.

        Any failure while reading or parsing is raised as
        :class:`ConfigurationLoadError`; an empty document is never used in
        its place.
        """

        path = Path(config_path)
        log_message(f"Loading credential configuration from {path}", "INFO")
        try:
            document = document_loader(path)
        except ApiClientError:
            raise
        except Exception as exc:
            log_message(f"Failed to load credential configuration {path}: {exc}", "ERROR")
            raise ConfigurationLoadError(
                f"Error opening credential configuration {path}: {exc}", path=path
            ) from exc
        return cls(document, path, key_prefix=key_prefix)

    @property
    def config_path(self) -> Path:
        return self._config_path

    def key_for(self, name: str) -> str:
        """Return the stored key for one of the six credential field names."""

        return f"{self._key_prefix}{name}"

    # --- raw attribute access ---

    def get(self, key: str) -> str:
        """Return the stored value for ``key``, or ``""`` when it is absent."""

        with self._lock:
            value = self._document.get(key)
        return value if value is not None else ""

    def set(self, key: str, value: Optional[str]) -> None:
        """Update ``key`` in memory. Nothing is written until :meth:`save`."""

        with self._lock:
            self._document.set(key, "" if value is None else str(value))

    def save(self) -> None:
        """Write the whole document back to :attr:`config_path`.

        On failure the in-memory values are kept so the caller can retry.
        """

        with self._lock:
            try:
                self._document.save(self._config_path)
            except Exception as exc:
                log_message(f"Failed to save credential configuration {self._config_path}: {exc}", "ERROR")
                raise PersistenceError(
                    f"Could not write credential configuration {self._config_path}: {exc}",
                    path=self._config_path,
                ) from exc
        log_message(f"Saved credential configuration to {self._config_path}", "DEBUG")

    @contextmanager
    def batch(self) -> Iterator["CredentialStore"]:
        """Hold the store lock for the duration of the ``with`` block."""

        with self._lock:
            yield self

    def update(self, values: Mapping[str, Optional[str]], *, save: bool = True) -> None:
        """Set several raw keys, and optionally save, under one lock acquisition."""

        with self.batch():
            for key, value in values.items():
                self.set(key, value)
            if save:
                self.save()

    # --- typed credential fields ---

    client_id = _text_property(CLIENT_ID, "ClientId registered for the API client.")
    client_secret = _text_property(CLIENT_SECRET, "ClientSecret registered for the API client.")
    redirect_uri = _text_property(REDIRECT_URI, "RedirectUri used by the authorization flow.")
    access_token = _text_property(ACCESS_TOKEN, "Current OAuth2 access token.")
    refresh_token = _text_property(REFRESH_TOKEN, "Current OAuth2 refresh token.")

    @property
    def expiration_datetime(self) -> datetime:
        """Expiry of the access token; :data:`MIN_INSTANT` when not stored.

        A stored value that is present but unreadable raises
        :class:`InvalidCredentialValue` rather than being treated as absent.
        """

        key = self.key_for(EXPIRATION_DATETIME)
        raw = self.get(key)
        if not raw.strip():
            return MIN_INSTANT
        try:
            return as_aware(parse_roundtrip(raw))
        except (ValueError, OverflowError, OSError) as exc:
            log_message(f"Stored {key} value {raw!r} is not a valid date/time", "ERROR")
            raise InvalidCredentialValue(
                f"Stored {key} value {raw!r} in {self._config_path} is not a valid date/time",
                key=key,
                value=raw,
                path=self._config_path,
            ) from exc

    @expiration_datetime.setter
    def expiration_datetime(self, value: datetime) -> None:
        self.set(self.key_for(EXPIRATION_DATETIME), format_roundtrip(value))


_store: Optional[CredentialStore] = None
_store_lock = threading.Lock()
_locator: Optional[ConfigLocator] = None
_document_loader: DocumentLoader = XmlAttributeDocument.load


def configure_credential_store(
    *,
    locator: Optional[ConfigLocator] = None,
    document_loader: Optional[DocumentLoader] = None,
) -> None:
    """Replace the collaborators used to build the process-wide store.

    Drops any store already created so the next access loads again.
    """

    global _store, _locator, _document_loader
    with _store_lock:
        if locator is not None:
            _locator = locator
        if document_loader is not None:
            _document_loader = document_loader
        _store = None


def get_credential_store() -> CredentialStore:
    """Return the process-wide store, loading it on first access.

    Concurrent first calls perform a single load. A failed load is raised to
    the caller that triggered it and is not cached; the next call tries again.
    """

    global _store
    store = _store
    if store is not None:
        return store
    with _store_lock:
        if _store is None:
            locator = _locator or get_config_locator()
            _store = CredentialStore.open(locator.resolve(), document_loader=_document_loader)
        return _store


def reset_credential_store() -> None:
    """Forget the process-wide store and restore default collaborators."""

    global _store, _locator, _document_loader
    with _store_lock:
        _store = None
        _locator = None
        _document_loader = XmlAttributeDocument.load


__all__ = [
    "ACCESS_TOKEN",
    "CLIENT_ID",
    "CLIENT_SECRET",
    "CredentialStore",
    "EXPIRATION_DATETIME",
    "FIELD_NAMES",
    "REDIRECT_URI",
    "REFRESH_TOKEN",
    "configure_credential_store",
    "get_credential_store",
    "reset_credential_store",
]
