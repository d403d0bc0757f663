"""Port: object store — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol


class ObjectStore(Protocol):
    """Abstract contract for a flat key/bytes store with prefix listing."""

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Write (or overwrite) *key* and return a locator for it."""
        ...

    async def list(self, prefix: str) -> list[str]:
        """Return every key starting with *prefix*."""
        ...

    async def get(self, key: str) -> bytes:
        """Return the object body; raise ``ArtifactNotFoundError`` if absent."""
        ...

    async def delete_by_prefix(self, prefix: str) -> None:
        """Remove every key starting with *prefix*; no-op when none match."""
        ...
