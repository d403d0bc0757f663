"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

PAYLOAD_MARKER = "FILE: "


class FindingCategory(str, Enum):
    """Area a finding is about."""

    SECURITY = "security"
    PERFORMANCE = "performance"
    QUALITY = "quality"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class ContentEntry:
    """One child of a directory listing from the contents API."""

    name: str
    path: str
    type: str  # "file", "dir", "symlink" or "submodule"


@dataclass(frozen=True, slots=True)
class FileBody:
    """A single file as returned by the contents API (still transport-encoded)."""

    path: str
    content: str
    encoding: str = "base64"


@dataclass(frozen=True, slots=True)
class FileRecord:
    """A decoded file that made it into the payload."""

    path: str
    content: str

    def render(self) -> str:
        return f"\n{PAYLOAD_MARKER}{self.path}\n---\n{self.content}\n"


@dataclass(frozen=True, slots=True)
class CodebasePayload:
    """Path-tagged file contents in walk order."""

    records: tuple[FileRecord, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.records)

    @property
    def paths(self) -> list[str]:
        return [r.path for r in self.records]

    def render(self) -> str:
        """Serialise as one text blob, each file introduced by a marker line."""
        return "".join(r.render() for r in self.records)


@dataclass(frozen=True, slots=True)
class Finding:
    """One structured observation from the model."""

    category: FindingCategory
    severity: Severity
    description: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.category.value,
            "severity": self.severity.value,
            "description": self.description,
        }


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """The validated output of one model invocation."""

    summary: str
    documentation: str
    diagram: str
    findings: tuple[Finding, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class AnalysisRun:
    """A completed analysis plus where its artifacts were (or would be) stored."""

    result: AnalysisResult
    storage_path: str
    timestamp: str


@dataclass(frozen=True, slots=True)
class StoredRun:
    """A run read back from the object store."""

    path: str
    result: AnalysisResult
    repo_url: str | None = None


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One row of the history listing."""

    id: str
    repo_name: str
    timestamp: str
    summary: str
    path: str
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PersistOutcome:
    """Result of writing a run's three artifacts."""

    path: str
    locators: dict[str, str] = field(default_factory=dict)
    failures: dict[str, BaseException] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures
