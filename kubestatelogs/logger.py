"""Structured JSON-lines logging of collected entries."""

from __future__ import annotations

import base64
import dataclasses
import json
import sys
import threading
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TextIO

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    if value.utcoffset() == timezone.utc.utcoffset(None):
        text = text[: -len("+00:00")] + "Z"
    return text


def to_json_value(value: Any) -> Any:
    """Convert an entry into plain JSON-compatible values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json_value(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return to_json_value(value.value)
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, Mapping):
        return {
            str(k): to_json_value(v)
            for k, v in sorted(value.items(), key=lambda item: str(item[0]))
        }
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_value(v) for v in value]
    return value


class JsonLogger:
    """Writes each entry as one line of compact JSON."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()

    def log(self, entry: Any) -> None:
        """Serialise an entry and write it; raises TypeError if it cannot be encoded."""
        line = json.dumps(to_json_value(entry), separators=(",", ":"), ensure_ascii=False)
        for char, escaped in _ESCAPES.items():
            line = line.replace(char, escaped)
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()