from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple


class NegotiatedFormat(str, Enum):
    JSON = "json"
    XML = "xml"

    @property
    def content_type(self) -> str:
        return f"application/problem+{self.value}"


# Wildcards only count when the caller is free to decline.
_WILDCARDS = ("*/*", "application/*")


def _media_ranges(accept: str) -> List[Tuple[str, float]]:
    ranges: List[Tuple[str, float]] = []
    if not isinstance(accept, str):
        return ranges
    for entry in accept.split(","):
        media_type, *params = entry.split(";")
        media_type = media_type.strip().lower()
        if not media_type:
            continue
        q = 1.0
        for param in params:
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    q = float(value.strip())
                except ValueError:
                    q = 0.0
        if q <= 0:
            continue
        ranges.append((media_type, q))
    # sorted() is stable, so header order breaks ties.
    return sorted(ranges, key=lambda r: -r[1])


def _match(media_type: str) -> Optional[NegotiatedFormat]:
    _, _, subtype = media_type.partition("/")
    for fmt in (NegotiatedFormat.JSON, NegotiatedFormat.XML):
        if subtype == fmt.value or subtype.endswith("+" + fmt.value):
            return fmt
    return None


def negotiate_or_decline(accept: str) -> Optional[NegotiatedFormat]:
    """Pick a format for ``accept``, or None when the client accepts neither."""
    for media_type, _ in _media_ranges(accept):
        fmt = _match(media_type)
        if fmt is not None:
            return fmt
        if media_type in _WILDCARDS:
            return NegotiatedFormat.JSON
    return None


def negotiate(accept: str) -> NegotiatedFormat:
    """Pick a format for ``accept``; anything unrecognised gets JSON."""
    for media_type, _ in _media_ranges(accept):
        fmt = _match(media_type)
        if fmt is not None:
            return fmt
    return NegotiatedFormat.JSON
