"""Scrubbing of extension data before it is rendered.

Problem payloads carry caller-supplied extensions and, in debug mode, error
internals. Both may hold values no wire format can represent: open files,
sockets, callables, half-decoded bytes. ``sanitize`` turns such a structure
into plain dict/list/scalar data:

  - resource handles and runtime object references are dropped together with
    their key (no placeholder is left behind);
  - other rich values go through ``pydantic_core.to_jsonable_python``; values
    it cannot convert are dropped as well;
  - invalid text is repaired with U+FFFD so encoders never raise.
"""

from __future__ import annotations

import io
import math
import socket
import threading
import types
from collections.abc import Mapping
from typing import Any, Dict, List

from pydantic_core import PydanticSerializationError, to_jsonable_python


class _Drop:
    pass


DROP = _Drop()

_RESOURCE_TYPES = (
    io.IOBase,
    socket.socket,
    types.ModuleType,
    types.GeneratorType,
    types.AsyncGeneratorType,
    types.CoroutineType,
    types.FrameType,
    types.TracebackType,
    threading.Thread,
    type(threading.Lock()),
    type(threading.RLock()),
)

# Guard for self-referencing containers.
_MAX_DEPTH = 64


def is_resource(value: Any) -> bool:
    if isinstance(value, _RESOURCE_TYPES):
        return True
    # Classes are callable but harmless to describe; plain callables are not.
    return callable(value) and not isinstance(value, type)


def clean_text(value: str) -> str:
    try:
        value.encode("utf-8")
        return value
    except UnicodeEncodeError:
        pass
    try:
        raw = value.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        raw = value.encode("utf-8", "surrogatepass")
    return raw.decode("utf-8", "replace")


def sanitize(value: Any, _depth: int = 0) -> Any:
    """Return a JSON/XML-safe copy of ``value``, or ``DROP`` if it must go."""
    if _depth > _MAX_DEPTH:
        return DROP
    if value is None:
        return value
    if isinstance(value, bool):
        return bool(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        return clean_text(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", "replace")
    if is_resource(value):
        return DROP
    if isinstance(value, Mapping):
        return sanitize_mapping(value, _depth)
    if isinstance(value, (list, tuple, set, frozenset)):
        return _sanitize_items(value, _depth)
    try:
        converted = to_jsonable_python(value)
    except (PydanticSerializationError, TypeError, ValueError):
        return DROP
    if converted is value:
        return DROP
    return sanitize(converted, _depth + 1)


def sanitize_mapping(value: Mapping, _depth: int = 0) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, item in value.items():
        clean = sanitize(item, _depth + 1)
        if clean is DROP:
            continue
        out[clean_text(key) if isinstance(key, str) else str(key)] = clean
    return out


def _sanitize_items(value: Any, _depth: int) -> List[Any]:
    out: List[Any] = []
    for item in value:
        clean = sanitize(item, _depth + 1)
        if clean is not DROP:
            out.append(clean)
    return out
