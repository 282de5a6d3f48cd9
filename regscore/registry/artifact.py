"""Artifact records and mime type helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

_OCTET_RE = re.compile(r"^application/octet-stream;type=(.*)$")
_YAML_RE = re.compile(r"^application/yaml;type=(.*)$")


@dataclass(frozen=True)
class Artifact:
    """A named blob attached to a registry resource."""

    name: str
    mime_type: str = ""
    contents: bytes = b""
    update_time: datetime | None = None
    labels: dict[str, str] = field(default_factory=dict)

    def without_contents(self) -> Artifact:
        return replace(self, contents=b"")

    def metadata(self) -> dict[str, Any]:
        """Fields exposed to list filters."""
        return {
            "name": self.name,
            "mime_type": self.mime_type,
            "update_time": self.update_time,
            "labels": dict(self.labels),
        }


def mime_type_for_message_type(message_type: str) -> str:
    return f"application/octet-stream;type={message_type}"


def message_type_for_mime_type(mime_type: str) -> str:
    """Extract the schema name from a typed mime string.

    Accepts ``application/octet-stream;type=T`` and ``application/yaml;type=T``;
    a trailing ``+gzip`` marker is dropped.
    """
    for regex in (_YAML_RE, _OCTET_RE):
        m = regex.match(mime_type)
        if m and m.group(1):
            return m.group(1).removesuffix("+gzip")
    raise ValueError(f"invalid message mime type: {mime_type}")


def is_gzip(mime_type: str) -> bool:
    return "+gzip" in mime_type


def is_yaml(mime_type: str) -> bool:
    return mime_type.startswith("application/yaml;")


def kind_for_mime_type(mime_type: str) -> str:
    """Short kind (last dotted component), or "" for untyped mime strings."""
    try:
        return message_type_for_mime_type(mime_type).rsplit(".", 1)[-1]
    except ValueError:
        return ""
