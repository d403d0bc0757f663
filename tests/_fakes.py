"""In-memory stand-ins for the GitHub, model and object-store collaborators."""

from __future__ import annotations

import base64
import json
from typing import Any

from codelens.domain.entities import ContentEntry, FileBody
from codelens.domain.exceptions import (
    ArtifactNotFoundError,
    GitHubApiError,
    NotFoundOrNoAccessError,
    StorageError,
)


class FakeRepoContents:
    """Serves a repository described as ``{file_path: content}``."""

    def __init__(self, files: dict[str, str], failing: set[str] | None = None) -> None:
        self._files = files
        self._failing = failing or set()
        self.calls: list[str] = []

    def _children(self, path: str) -> list[ContentEntry]:
        prefix = f"{path}/" if path else ""
        seen: dict[str, ContentEntry] = {}
        for file_path in self._files:
            if not file_path.startswith(prefix):
                continue
            head, sep, _rest = file_path[len(prefix):].partition("/")
            child = f"{prefix}{head}"
            seen.setdefault(child, ContentEntry(name=head, path=child, type="dir" if sep else "file"))
        return list(seen.values())

    async def list_or_get_content(
        self, owner: str, name: str, path: str = ""
    ) -> list[ContentEntry] | FileBody:
        self.calls.append(path)
        if path in self._failing:
            raise GitHubApiError(f"boom: {path}")
        if path in self._files:
            encoded = base64.b64encode(self._files[path].encode("utf-8")).decode("ascii")
            return FileBody(path=path, content=encoded, encoding="base64")
        children = self._children(path)
        if not children and path:
            raise NotFoundOrNoAccessError(f"Not found: {path}")
        return children


class FakeLlm:
    """Returns a canned response and records every prompt."""

    def __init__(self, response: str) -> None:
        self._response = response
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self._response


class InMemoryObjectStore:
    """Dict-backed object store; keys ending in a ``failing`` suffix raise."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self._failing = failing or set()

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        if any(key.endswith(suffix) for suffix in self._failing):
            raise StorageError(f"Upload failed for {key}")
        self.objects[key] = (data, content_type)
        return f"memory://{key}"

    async def list(self, prefix: str) -> list[str]:
        return [k for k in self.objects if k.startswith(prefix)]

    async def get(self, key: str) -> bytes:
        try:
            return self.objects[key][0]
        except KeyError:
            raise ArtifactNotFoundError(f"Object not found: {key}") from None

    async def delete_by_prefix(self, prefix: str) -> None:
        for key in [k for k in self.objects if k.startswith(prefix)]:
            del self.objects[key]


def model_response(**overrides: Any) -> str:
    """A well-formed model response, with fields replaced or removed (``None``)."""
    data: dict[str, Any] = {
        "summary": "A widget toolkit written in TypeScript.",
        "documentation": "# Widgets\n\nRun `npm start`.",
        "mermaid": 'flowchart TD\nA["CLI"] --> B["Core"]',
        "analysis": [
            {"type": "security", "severity": "high", "description": "Token logged."},
            {"type": "quality", "severity": "low", "description": "No tests."},
        ],
    }
    for key, value in overrides.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
    return json.dumps(data)
