"""File filtering — decide which directories to enter and which files to keep."""

from __future__ import annotations

SKIP_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        ".next",
        "dist",
        "build",
        "public",
    }
)

SKIP_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico",
        ".pdf",
        ".zip",
        ".lock",
        ".json",
        ".map",
    }
)

SKIP_FILENAMES: frozenset[str] = frozenset(
    {
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        ".gitignore",
        "LICENSE",
    }
)

# Never sent to a hosted model.
SECRET_FILES: frozenset[str] = frozenset(
    {".env", ".env.local", ".env.production", ".env.development"}
)

# Carries project metadata even though ``.json`` is otherwise skipped.
ALWAYS_KEEP: frozenset[str] = frozenset({"package.json"})


def _extension(filename: str) -> str:
    dot = filename.rfind(".")
    return filename[dot:].lower() if dot != -1 else ""


def is_relevant(filename: str) -> bool:
    """Return *True* if a file with this name should be sent to the model.

    Precedence: exact-name denylist, then extension denylist (except
    ``package.json``), then accept.  Names without a dot are always kept.
    """
    if filename in SKIP_FILENAMES or filename in SECRET_FILES:
        return False

    ext = _extension(filename)
    if not ext:
        return True
    if ext in SKIP_EXTENSIONS:
        return filename in ALWAYS_KEEP

    return True


def is_skipped_dir(name: str) -> bool:
    return name in SKIP_DIRS
