"""Artifact store — persist and read back analysis runs.

Layout under the object store (one directory per run)::

    analysis/{owner}_{name}/{timestamp}/documentation.md
    analysis/{owner}_{name}/{timestamp}/architecture.mmd
    analysis/{owner}_{name}/{timestamp}/analysis.json

``timestamp`` is an ISO-8601 UTC instant with ``:`` and ``.`` replaced by
``-``.  A run only counts as present when its ``analysis.json`` exists.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

from codelens.domain.entities import (
    AnalysisResult,
    HistoryEntry,
    PersistOutcome,
    StoredRun,
)
from codelens.domain.exceptions import (
    ArtifactNotFoundError,
    CodeLensError,
    InvalidInputError,
    MalformedResponseError,
)
from codelens.domain.ports.object_store import ObjectStore
from codelens.services.response_normalizer import parse_finding

logger = logging.getLogger(__name__)

T = TypeVar("T")

ANALYSIS_PREFIX = "analysis/"
DOCUMENTATION_FILE = "documentation.md"
DIAGRAM_FILE = "architecture.mmd"
METADATA_FILE = "analysis.json"

_CONTENT_TYPES: dict[str, str] = {
    ".json": "application/json",
    ".md": "text/markdown",
    ".mmd": "text/vnd.mermaid",
}

_KEY_TIMESTAMP_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})T(?P<h>\d{2})-(?P<m>\d{2})-(?P<s>\d{2})(?:-(?P<ms>\d+))?Z$"
)


# ── Path helpers ────────────────────────────────────────────────────────────


def content_type_for(path: str) -> str:
    """Infer an object's content type from its extension."""
    dot = path.rfind(".")
    ext = path[dot:].lower() if dot != -1 else ""
    return _CONTENT_TYPES.get(ext, "text/plain")


def iso_timestamp(moment: datetime) -> str:
    """Millisecond UTC ISO-8601, e.g. ``2026-10-19T12:30:45.123Z``."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def key_timestamp(moment: datetime) -> str:
    """ISO timestamp made safe for a key segment (``:`` and ``.`` become ``-``)."""
    return iso_timestamp(moment).replace(":", "-").replace(".", "-")


def parse_timestamp(value: str) -> datetime | None:
    """Parse either an ISO timestamp or its key-segment form."""
    value = value.strip()
    match = _KEY_TIMESTAMP_RE.match(value)
    if match:
        value = f"{match['date']}T{match['h']}:{match['m']}:{match['s']}"
        if match["ms"]:
            value += f".{match['ms']}"
        value += "+00:00"
    elif value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_run_path(owner: str, name: str, created_at: datetime) -> str:
    return f"{ANALYSIS_PREFIX}{owner}_{name}/{key_timestamp(created_at)}"


def normalize_run_path(path: str) -> str:
    """Validate a caller-supplied run path and drop any trailing slash."""
    cleaned = path.strip().rstrip("/")
    if not cleaned:
        raise InvalidInputError("Path is required")
    if not cleaned.startswith(ANALYSIS_PREFIX) or cleaned == ANALYSIS_PREFIX.rstrip("/"):
        raise InvalidInputError(f"Path must point to a run under '{ANALYSIS_PREFIX}'.")
    return cleaned


# ── Best-effort combinator ──────────────────────────────────────────────────


async def gather_best_effort(
    operations: Mapping[str, Awaitable[T]],
) -> tuple[dict[str, T], dict[str, BaseException]]:
    """Await every operation; collect results and failures instead of raising.

    A failure in one operation never cancels the others.  Each failure is
    logged with its name.
    """
    names = list(operations)
    outcomes = await asyncio.gather(*operations.values(), return_exceptions=True)

    results: dict[str, T] = {}
    failures: dict[str, BaseException] = {}
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, Exception):
            logger.error("Operation %s failed: %s", name, outcome)
            failures[name] = outcome
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results[name] = outcome
    return results, failures


# ── Store ───────────────────────────────────────────────────────────────────


class ArtifactStore:
    """Reads and writes analysis runs through an :class:`ObjectStore`."""

    def __init__(self, objects: ObjectStore) -> None:
        self._objects = objects

    async def save(self, path: str, content: str) -> str:
        """Write one artifact, overwriting any existing object at *path*."""
        locator = await self._objects.put(path, content.encode("utf-8"), content_type_for(path))
        logger.info("Uploaded artifact %s", path)
        return locator

    async def save_run(
        self,
        path: str,
        result: AnalysisResult,
        *,
        repo_url: str | None,
        owner: str | None,
        name: str | None,
        created_at: datetime,
    ) -> PersistOutcome:
        """Write documentation, diagram and metadata for one run.

        The three writes run concurrently and independently; failures are
        returned (and logged), never raised.
        """
        metadata = {
            "summary": result.summary,
            "analysis": [f.to_dict() for f in result.findings],
            "repoUrl": repo_url,
            "timestamp": iso_timestamp(created_at),
            "owner": owner,
            "name": name,
        }
        locators, failures = await gather_best_effort(
            {
                "documentation": self.save(f"{path}/{DOCUMENTATION_FILE}", result.documentation),
                "mermaid": self.save(f"{path}/{DIAGRAM_FILE}", result.diagram),
                "metadata": self.save(
                    f"{path}/{METADATA_FILE}", json.dumps(metadata, indent=2)
                ),
            }
        )
        if failures:
            logger.error(
                "Saved %d/3 artifacts to %s; failed: %s",
                len(locators),
                path,
                ", ".join(sorted(failures)),
            )
        else:
            logger.info("All artifacts saved at: %s", path)
        return PersistOutcome(path=path, locators=locators, failures=failures)

    async def list_runs(self) -> list[HistoryEntry]:
        """Return every complete run, most recent first."""
        keys = await self._objects.list(ANALYSIS_PREFIX)
        metadata_keys = [k for k in keys if k.endswith(f"/{METADATA_FILE}")]

        entries = await asyncio.gather(*(self._read_entry(k) for k in metadata_keys))
        found = [e for e in entries if e is not None]

        oldest = datetime.min.replace(tzinfo=timezone.utc)
        found.sort(key=lambda e: e.created_at or oldest, reverse=True)
        return found

    async def load(self, path: str) -> StoredRun:
        """Read a run back; raise ``ArtifactNotFoundError`` if any artifact is missing."""
        path = normalize_run_path(path)
        try:
            raw_metadata, documentation, diagram = await asyncio.gather(
                self._objects.get(f"{path}/{METADATA_FILE}"),
                self._objects.get(f"{path}/{DOCUMENTATION_FILE}"),
                self._objects.get(f"{path}/{DIAGRAM_FILE}"),
            )
        except ArtifactNotFoundError as exc:
            logger.warning("Incomplete run at %s: %s", path, exc)
            raise ArtifactNotFoundError("Analysis files not found") from exc

        try:
            metadata = _decode_metadata(raw_metadata)
            findings = tuple(parse_finding(item) for item in metadata.get("analysis") or [])
        except MalformedResponseError as exc:
            logger.warning("Unreadable metadata at %s: %s", path, exc)
            raise ArtifactNotFoundError("Analysis files not found") from exc

        summary = metadata.get("summary")
        return StoredRun(
            path=path,
            result=AnalysisResult(
                summary=summary if isinstance(summary, str) else "",
                documentation=documentation.decode("utf-8"),
                diagram=diagram.decode("utf-8"),
                findings=findings,
            ),
            repo_url=metadata.get("repoUrl"),
        )

    async def delete(self, path: str) -> None:
        """Remove every object of a run; deleting a missing run is not an error."""
        path = normalize_run_path(path)
        await self._objects.delete_by_prefix(f"{path}/")
        logger.info("Deleted analysis: %s", path)

    async def _read_entry(self, key: str) -> HistoryEntry | None:
        try:
            metadata = _decode_metadata(await self._objects.get(key))
        except CodeLensError as exc:
            logger.warning("Skipping history entry %s: %s", key, exc)
            return None

        path = key[: -len(METADATA_FILE) - 1]
        segments = path.split("/")
        repo_segment = segments[1] if len(segments) > 1 else ""
        time_segment = segments[2] if len(segments) > 2 else ""

        owner, name = metadata.get("owner"), metadata.get("name")
        if isinstance(owner, str) and isinstance(name, str) and owner and name:
            repo_name = f"{owner}/{name}"
        else:
            # Records written without explicit identity; ambiguous if the owner has "_".
            repo_name = repo_segment.replace("_", "/", 1)

        raw_time = metadata.get("timestamp")
        created_at = parse_timestamp(raw_time) if isinstance(raw_time, str) else None
        if created_at is None:
            created_at = parse_timestamp(time_segment)

        summary = metadata.get("summary")
        return HistoryEntry(
            id=key,
            repo_name=repo_name,
            timestamp=iso_timestamp(created_at) if created_at else time_segment,
            summary=summary if isinstance(summary, str) else "",
            path=path,
            created_at=created_at,
        )


def _decode_metadata(raw: bytes) -> dict[str, Any]:
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedResponseError(f"Invalid metadata JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResponseError("Metadata is not a JSON object.")
    return data
