from __future__ import annotations

import json
from typing import Any, Mapping


def serialize_json(payload: Mapping[str, Any]) -> bytes:
    text = json.dumps(payload, ensure_ascii=False, allow_nan=True, default=lambda o: None)
    # Residual lone surrogates become "?" instead of raising.
    return text.encode("utf-8", "replace")
