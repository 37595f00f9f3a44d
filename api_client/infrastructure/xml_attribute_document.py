"""XML implementation of the attribute document.

The file holds ``<add key="..." value="..."/>`` entries under a root element::

    <?xml version="1.0" encoding="utf-8"?>
    <configuration>
      <add key="ApiClient.ClientId" value="..." />
      <add key="ApiClient.ClientSecret" value="..." />
    </configuration>

The parsed tree is kept as-is and mutated in place, so entries, comments,
namespace prefixes and attributes this package does not know about survive
a save.
"""

from __future__ import annotations

import os
import re
import uuid
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterator, Optional

from api_client.infrastructure.log_utils import log_message

ENTRY_TAG = "add"
KEY_ATTRIBUTE = "key"
VALUE_ATTRIBUTE = "value"


def _comment_preserving_parser() -> ET.XMLParser:
    return ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))


def _declared_prefixes(data: bytes) -> Dict[str, str]:
    """Map each namespace prefix declared in ``data`` to its URI."""

    scanner = ET.XMLPullParser(events=("start-ns",))
    scanner.feed(data)
    scanner.close()
    return {prefix: uri for _, (prefix, uri) in scanner.read_events() if prefix}


class XmlAttributeDocument:
    """Key/value view over an ``<add key value/>`` XML document."""

    def __init__(self, tree: ET.ElementTree, namespaces: Optional[Dict[str, str]] = None) -> None:
        self._tree = tree
        self._namespaces = dict(namespaces or {})
        self._entries: Dict[str, ET.Element] = {}
        for element in tree.getroot().findall(ENTRY_TAG):
            key = element.get(KEY_ATTRIBUTE)
            if key is not None and key not in self._entries:
                self._entries[key] = element

    @classmethod
    def load(cls, path: Path | str) -> "XmlAttributeDocument":
        """Parse ``path``; ``OSError`` and ``ET.ParseError`` propagate to the caller."""

        data = Path(path).read_bytes()
        return cls._from_bytes(data)

    @classmethod
    def from_string(cls, text: str) -> "XmlAttributeDocument":
        return cls._from_bytes(text.encode("utf-8"))

    @classmethod
    def _from_bytes(cls, data: bytes) -> "XmlAttributeDocument":
        root = ET.fromstring(data, parser=_comment_preserving_parser())
        return cls(ET.ElementTree(root), _declared_prefixes(data))

    def get(self, key: str) -> Optional[str]:
        element = self._entries.get(key)
        if element is None:
            return None
        return element.get(VALUE_ATTRIBUTE, "")

    def set(self, key: str, value: str) -> None:
        element = self._entries.get(key)
        if element is None:
            element = ET.SubElement(self._tree.getroot(), ENTRY_TAG, {KEY_ATTRIBUTE: key})
            self._entries[key] = element
        element.set(VALUE_ATTRIBUTE, value)

    def keys(self) -> Iterator[str]:
        return iter(list(self._entries))

    def to_string(self) -> str:
        self._register_prefixes()
        return ET.tostring(self._tree.getroot(), encoding="unicode")

    def save(self, path: Path | str) -> None:
        """Write the document next to ``path`` then swap it into place."""

        target = Path(path)
        tmp_path = target.with_name(f"{target.name}.{uuid.uuid4().hex}.tmp")
        self._register_prefixes()
        try:
            self._tree.write(str(tmp_path), encoding="utf-8", xml_declaration=True)
            os.replace(tmp_path, target)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        try:
            os.chmod(target, 0o600)
        except OSError as exc:  # pragma: no cover - depends on platform
            log_message(f"Could not set permissions on {target}: {exc}", "WARN")

    def _register_prefixes(self) -> None:
        # ElementTree keeps one process-wide prefix map; names like ns0 are reserved.
        for prefix, uri in self._namespaces.items():
            if not re.fullmatch(r"ns\d+", prefix):
                ET.register_namespace(prefix, uri)


__all__ = ["XmlAttributeDocument"]
