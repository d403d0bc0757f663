"""Repository tree walker — collect relevant file contents into one payload.

The walk is breadth-first over an explicit worklist of directory paths.
Each level's directory listings, and then that level's file bodies, are
fetched concurrently behind a single semaphore so the number of in-flight
GitHub requests stays bounded.  A failure for any single path is logged and
contributes nothing; it never aborts the walk.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging

from codelens.domain.entities import (
    CodebasePayload,
    ContentEntry,
    FileBody,
    FileRecord,
)
from codelens.domain.exceptions import CodeLensError
from codelens.domain.ports.repo_contents import RepoContents
from codelens.domain.value_objects import RepositoryReference
from codelens.services.file_filter import is_relevant, is_skipped_dir

logger = logging.getLogger(__name__)


def decode_body(body: FileBody) -> str | None:
    """Decode a contents-API file body into text (``None`` if it has none)."""
    if body.encoding == "base64":
        try:
            raw = base64.b64decode(body.content)
        except (binascii.Error, ValueError):
            logger.warning("Undecodable base64 body for %s — skipping", body.path)
            return None
        return raw.decode("utf-8", errors="replace")
    if body.encoding in ("", "utf-8"):
        return body.content
    # "none" is what GitHub sends for files over 1 MB
    logger.info("No inline content for %s (encoding=%r) — skipping", body.path, body.encoding)
    return None


class TreeWalker:
    """Walks a repository through a :class:`RepoContents` adapter."""

    def __init__(self, contents: RepoContents, max_concurrency: int = 8) -> None:
        self._contents = contents
        self._max_concurrency = max(1, max_concurrency)

    async def walk(self, ref: RepositoryReference, path: str = "") -> CodebasePayload:
        """Return every relevant file under *path* as a path-tagged payload."""
        sem = asyncio.Semaphore(self._max_concurrency)
        seen: set[str] = {path}
        records: list[FileRecord] = []
        pending: list[str] = [path]

        while pending:
            listings = await asyncio.gather(
                *(self._list_dir(ref, dir_path, sem) for dir_path in pending)
            )

            pending = []
            files: list[ContentEntry] = []
            for entries in listings:
                for entry in entries:
                    if entry.path in seen:
                        continue
                    seen.add(entry.path)

                    if entry.type == "dir":
                        if is_skipped_dir(entry.name):
                            logger.debug("Skipping directory %s", entry.path)
                            continue
                        pending.append(entry.path)
                    elif entry.type == "file" and is_relevant(entry.name):
                        files.append(entry)

            fetched = await asyncio.gather(
                *(self._fetch_file(ref, entry, sem) for entry in files)
            )
            records.extend(r for r in fetched if r is not None)

        logger.info("Collected %d file(s) from %s", len(records), ref.full_name)
        return CodebasePayload(records=tuple(records))

    async def _list_dir(
        self, ref: RepositoryReference, path: str, sem: asyncio.Semaphore
    ) -> list[ContentEntry]:
        async with sem:
            try:
                data = await self._contents.list_or_get_content(ref.owner, ref.name, path)
            except CodeLensError as exc:
                logger.warning("Error fetching path %r of %s: %s", path, ref.full_name, exc)
                return []

        if isinstance(data, FileBody):
            logger.warning("Expected a directory at %r of %s, got a file", path, ref.full_name)
            return []
        return data

    async def _fetch_file(
        self, ref: RepositoryReference, entry: ContentEntry, sem: asyncio.Semaphore
    ) -> FileRecord | None:
        async with sem:
            logger.debug("Fetching file: %s", entry.path)
            try:
                data = await self._contents.list_or_get_content(
                    ref.owner, ref.name, entry.path
                )
            except CodeLensError as exc:
                logger.warning("Error fetching file %s of %s: %s", entry.path, ref.full_name, exc)
                return None

        if not isinstance(data, FileBody):
            return None
        content = decode_body(data)
        if content is None:
            return None
        return FileRecord(path=entry.path, content=content)
