"""XML rendering of problem payloads (``application/problem+xml``).

Layout follows RFC 7807 appendix A: a ``<problem>`` root in the
``urn:ietf:rfc:7807`` namespace, one child element per member. Nested
mappings become nested elements; sequences repeat the parent element once
per item. Scalars are written as text and are not typed on the way out.

Mapping keys pass through ``sanitize_xml_key`` at every depth. Two keys that
sanitize to the same name (``"a#"`` and ``"a$"``) are both emitted as sibling
elements; nothing de-duplicates them.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from typing import Any

XML_NAMESPACE = "urn:ietf:rfc:7807"
ROOT_ELEMENT = "problem"

_FIRST_CHAR = re.compile(r"^[^A-Za-z_]")
_OTHER_CHARS = re.compile(r"[^A-Za-z0-9_-]")
REPLACEMENT_CHAR = chr(0xFFFD)


def _is_xml_char(ch: str) -> bool:
    # XML 1.0 Char production.
    cp = ord(ch)
    return (
        cp in (0x9, 0xA, 0xD)
        or 0x20 <= cp <= 0xD7FF
        or 0xE000 <= cp <= 0xFFFD
        or 0x10000 <= cp <= 0x10FFFF
    )


def sanitize_xml_key(key: Any) -> str:
    name = str(key)
    if not name:
        return "_"
    name = _FIRST_CHAR.sub("_", name, count=1)
    return _OTHER_CHARS.sub("_", name)


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if all(_is_xml_char(ch) for ch in text):
        return text
    return "".join(ch if _is_xml_char(ch) else REPLACEMENT_CHAR for ch in text)


def _append(parent: ET.Element, name: str, value: Any) -> None:
    if isinstance(value, (list, tuple)):
        if not value:
            ET.SubElement(parent, name)
        for item in value:
            if isinstance(item, (list, tuple)):
                _append(ET.SubElement(parent, name), name, item)
            else:
                _append(parent, name, item)
        return

    element = ET.SubElement(parent, name)
    if isinstance(value, Mapping):
        _extend(element, value)
    elif value is not None:
        element.text = _text(value)


def _extend(element: ET.Element, mapping: Mapping) -> None:
    for key, value in mapping.items():
        _append(element, sanitize_xml_key(key), value)


def serialize_xml(payload: Mapping[str, Any]) -> bytes:
    root = ET.Element(ROOT_ELEMENT, {"xmlns": XML_NAMESPACE})
    _extend(root, payload)
    body = ET.tostring(root, encoding="unicode")
    return ('<?xml version="1.0" encoding="UTF-8"?>\n' + body).encode("utf-8", "replace")
