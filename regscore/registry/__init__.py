"""Registry access: artifacts, clients and storage backends."""

from .artifact import (
    Artifact,
    is_gzip,
    kind_for_mime_type,
    message_type_for_mime_type,
    mime_type_for_message_type,
)
from .client import ArtifactClient, MemoryArtifactClient
from .local import LocalRegistry

__all__ = [
    "Artifact",
    "ArtifactClient",
    "LocalRegistry",
    "MemoryArtifactClient",
    "is_gzip",
    "kind_for_mime_type",
    "message_type_for_mime_type",
    "mime_type_for_message_type",
]
