"""Port: repository contents — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from codelens.domain.entities import ContentEntry, FileBody


class RepoContents(Protocol):
    """Abstract contract for browsing a hosted repository path by path."""

    async def list_or_get_content(
        self, owner: str, name: str, path: str = ""
    ) -> list[ContentEntry] | FileBody:
        """Return the children of a directory, or the encoded body of a file."""
        ...
