"""Domain-level protocol for the key/value document backing the credential store."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, Optional, Protocol


class AttributeDocument(Protocol):
    """In-memory view of the configuration file as string attributes."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for ``key`` or ``None`` when absent."""

    def set(self, key: str, value: str) -> None:
        """Create or overwrite ``key`` in memory only."""

    def keys(self) -> Iterator[str]:
        """Iterate over every key currently held by the document."""

    def save(self, path: Path) -> None:
        """Write the whole document to ``path``, replacing its contents."""


DocumentLoader = Callable[[Path], AttributeDocument]


__all__ = ["AttributeDocument", "DocumentLoader"]
