"""Caller-side copy of the API client credentials."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Union

from api_client.config import settings
from api_client.domain.token import TokenResult
from api_client.infrastructure.credential_store import CredentialStore, get_credential_store
from api_client.infrastructure.log_utils import log_message
from api_client.utils.converters import MIN_INSTANT

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current local time with its UTC offset attached."""

    return datetime.now().astimezone()


def _mask(value: str) -> str:
    if not value:
        return ""
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-2:]}"


@dataclass
class CredentialSnapshot:
    """In-memory copy of the six stored credential fields.

    Load it with :meth:`load_from_store`, change fields freely, then write it
    back with :meth:`save` or :meth:`apply_token`. Every save writes all six
    fields, so the last snapshot saved wins.
    """

    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    redirect_uri: str = ""
    access_token: str = field(default="", repr=False)
    refresh_token: str = field(default="", repr=False)
    expiration_datetime: datetime = MIN_INSTANT

    @classmethod
    def load_from_store(cls, store: Optional[CredentialStore] = None) -> "CredentialSnapshot":
        """Read all six fields from ``store`` (default: the process-wide store)."""

        store = store or get_credential_store()
        with store.batch():
            return cls(
                client_id=store.client_id,
                client_secret=store.client_secret,
                redirect_uri=store.redirect_uri,
                access_token=store.access_token,
                refresh_token=store.refresh_token,
                expiration_datetime=store.expiration_datetime,
            )

    def save(self, store: Optional[CredentialStore] = None) -> None:
        """Write all six fields and flush the store to disk as one locked unit.

        :class:`~api_client.application.exceptions.PersistenceError` from the
        flush propagates unchanged.
        """

        store = store or get_credential_store()
        with store.batch():
            store.client_id = self.client_id
            store.client_secret = self.client_secret
            store.redirect_uri = self.redirect_uri
            store.access_token = self.access_token
            store.refresh_token = self.refresh_token
            store.expiration_datetime = self.expiration_datetime
            store.save()
        log_message(f"Saved API client credentials to {store.config_path}", "INFO")

    def apply_token(
        self,
        token: Union[TokenResult, Mapping[str, Any], None],
        *,
        store: Optional[CredentialStore] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Record a token exchange result and save.

        Missing tokens become empty strings and a missing ``expires_in`` counts
        as zero seconds. This snapshot only takes the new values once the save
        succeeded.
        """

        if isinstance(token, Mapping):
            token = TokenResult.from_mapping(token)
        now = (clock or local_now)()
        expires_in = (token.expires_in if token is not None else None) or 0

        staged = replace(
            self,
            access_token=(token.access_token if token is not None else None) or "",
            refresh_token=(token.refresh_token if token is not None else None) or "",
            expiration_datetime=now + timedelta(seconds=expires_in),
        )
        staged.save(store)

        self.access_token = staged.access_token
        self.refresh_token = staged.refresh_token
        self.expiration_datetime = staged.expiration_datetime
        log_message(
            f"Stored refreshed access token, expires at {self.expiration_datetime.isoformat()}",
            "INFO",
        )

    def is_access_token_expired(
        self,
        *,
        now: Optional[datetime] = None,
        leeway_seconds: Optional[int] = None,
    ) -> bool:
        """True when there is no access token or it expires within the leeway."""

        if not self.access_token:
            return True
        if self.expiration_datetime == MIN_INSTANT:
            return True
        if leeway_seconds is None:
            leeway_seconds = settings.TOKEN_EXPIRY_LEEWAY_SECONDS
        current = now or local_now()
        return current + timedelta(seconds=leeway_seconds) >= self.expiration_datetime

    def describe(self, *, reveal_secrets: bool = False) -> str:
        """Multi-line summary; secrets are masked unless ``reveal_secrets``."""

        def secret(value: str) -> str:
            return value if reveal_secrets else _mask(value)

        expiration = "" if self.expiration_datetime == MIN_INSTANT else self.expiration_datetime.isoformat()
        lines = [
            "   ------------ [ CredentialSnapshot ] -------------",
            f"     ClientId            : {self.client_id}",
            f"     ClientSecret        : {secret(self.client_secret)}",
            f"     RedirectUri         : {self.redirect_uri}",
            f"     AccessToken         : {secret(self.access_token)}",
            f"     RefreshToken        : {secret(self.refresh_token)}",
            f"     ExpirationDateTime  : {expiration}",
            "   ---------------------------------------------",
        ]
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.describe()


__all__ = ["Clock", "CredentialSnapshot", "local_now"]
