"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
"""

from __future__ import annotations


class CodeLensError(Exception):
    """Base exception for the entire application."""


# ── Configuration ───────────────────────────────────────────────────────────


class ConfigurationError(CodeLensError):
    """A required credential or setting is missing."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidInputError(CodeLensError):
    """The caller supplied an unusable URL, path or request field."""


# ── Lookup failures ─────────────────────────────────────────────────────────


class NotFoundOrNoAccessError(CodeLensError):
    """Nothing usable was found, or the credentials cannot see it."""


class ArtifactNotFoundError(NotFoundOrNoAccessError):
    """A stored artifact object does not exist."""


# ── Upstream failures ───────────────────────────────────────────────────────


class UpstreamError(CodeLensError):
    """A hosted collaborator (GitHub, model, object store) failed."""


class GitHubApiError(UpstreamError):
    """The GitHub contents API returned an error or was unreachable."""


class GitHubRateLimitError(GitHubApiError):
    """GitHub API rate limit exceeded (429 / 403 with rate-limit header)."""


class LlmError(UpstreamError):
    """Any error originating from the LLM provider."""


class StorageError(UpstreamError):
    """The object store rejected or failed an operation."""


# ── Model output ────────────────────────────────────────────────────────────


class MalformedResponseError(CodeLensError):
    """The model's output does not have the expected analysis shape."""
