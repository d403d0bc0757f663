"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass

from codelens.domain.exceptions import InvalidInputError

_GITHUB_URL_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/(?P<owner>[A-Za-z0-9\-_.]+)/"
    r"(?P<name>[A-Za-z0-9\-_.]+?)(?:\.git)?(?:/.*)?$"
)


@dataclass(frozen=True, slots=True)
class RepositoryReference:
    """Owner / name pair identifying a GitHub repository.

    Parsed from a URL like ``https://github.com/acme/widgets`` or
    ``https://github.com/acme/widgets.git``.  Anything after the repository
    segment (``/tree/main/src`` …) is ignored.
    """

    owner: str
    name: str

    @classmethod
    def from_url(cls, url: str) -> RepositoryReference:
        """Parse and validate a raw URL string."""
        url = url.strip()
        match = _GITHUB_URL_RE.match(url)
        if not match:
            raise InvalidInputError(
                "Invalid GitHub URL format. Please use https://github.com/owner/repo"
            )
        return cls(owner=match["owner"], name=match["name"])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"
