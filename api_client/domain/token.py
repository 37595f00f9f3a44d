"""Token payloads handed over by the OAuth2 token exchange."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class TokenResult:
    """Result of an authorization-code or refresh-token exchange.

    Any field may be missing; ``expires_in`` is a number of seconds.
    """

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[float] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "TokenResult":
        """Build a result from a token endpoint JSON body."""

        expires_in = payload.get("expires_in")
        if expires_in in (None, ""):
            seconds = None
        else:
            try:
                seconds = float(expires_in)
            except (TypeError, ValueError):
                seconds = None
        return cls(
            access_token=payload.get("access_token"),
            refresh_token=payload.get("refresh_token"),
            expires_in=seconds,
        )


__all__ = ["TokenResult"]
