"""
Streaming writer for the detailed (cross-origin) error JSON.

Unlike the persistable form this document is written field by field, so
only explicitly listed fields ever reach it, and name/value collections are
written as JSON objects that keep repeated names in order. Characters that
are significant in HTML are written as \\u escapes so the payload can be
embedded in a page without further encoding.
"""

import json
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, TextIO, Tuple

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "'": "\\u0027",
}


def escape_html_json(encoded: str) -> str:
    """Replace HTML-significant characters in encoded JSON text with \\u escapes."""
    for char, escaped in _HTML_ESCAPES.items():
        encoded = encoded.replace(char, escaped)
    return encoded


def to_epoch_seconds(value: Optional[datetime]) -> Optional[int]:
    """Whole seconds since the Unix epoch; naive datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


class DetailedJsonWriter:
    """
    Writes a single JSON object to a text sink.

    Usage:
        with DetailedJsonWriter(sink) as writer:
            writer.write_property("message", "boom")
            writer.write_pairs("cookies", [("a", "1"), ("a", "2")])
    """

    def __init__(self, sink: TextIO):
        self._sink = sink
        self._first = True

    def __enter__(self) -> "DetailedJsonWriter":
        self._sink.write("{")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self._sink.write("}")

    @staticmethod
    def _encode(value: Any) -> str:
        return escape_html_json(json.dumps(value))

    def _write_name(self, name: Optional[str]) -> None:
        if not self._first:
            self._sink.write(",")
        self._first = False
        self._sink.write(self._encode(name or ""))
        self._sink.write(":")

    def write_property(self, name: str, value: Any) -> None:
        """Write a scalar property (str, int, bool or None)."""
        self._write_name(name)
        self._sink.write(self._encode(value))

    def write_pairs(self, name: str, pairs: Optional[Iterable[Tuple[Optional[str], Optional[str]]]]) -> None:
        """
        Write a nested object from (name, value) pairs.

        Repeated names are written as repeated members, in order. None
        writes an empty object.
        """
        self._write_name(name)
        members = [
            f"{self._encode(key or '')}:{self._encode(value)}"
            for key, value in (pairs or [])
        ]
        self._sink.write("{" + ",".join(members) + "}")
