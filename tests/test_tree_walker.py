"""Tests for the repository tree walker."""

from __future__ import annotations

import asyncio

from codelens.domain.entities import FileBody
from codelens.domain.value_objects import RepositoryReference
from codelens.services.tree_walker import TreeWalker, decode_body
from tests._fakes import FakeRepoContents

REF = RepositoryReference(owner="acme", name="widgets")


def _walk(contents: FakeRepoContents, concurrency: int = 4):
    return asyncio.run(TreeWalker(contents, max_concurrency=concurrency).walk(REF))


def test_collects_relevant_files_only() -> None:
    contents = FakeRepoContents(
        {
            "src/index.ts": "export const x = 1;",
            "dist/bundle.js": "minified",
            "icon.png": "binary",
            "README": "hello",
        }
    )
    payload = _walk(contents)

    assert sorted(payload.paths) == ["README", "src/index.ts"]
    rendered = payload.render()
    assert "FILE: src/index.ts\n---\nexport const x = 1;" in rendered
    assert "minified" not in rendered


def test_never_descends_into_skipped_directories() -> None:
    contents = FakeRepoContents(
        {
            "node_modules/lib/index.js": "x",
            ".git/HEAD": "ref",
            "build/out.js": "x",
            "public/robots.txt": "x",
            ".next/server.js": "x",
            "app/dist/keep.ts": "x",
            "app/main.ts": "y",
        }
    )
    payload = _walk(contents)

    assert payload.paths == ["app/main.ts"]
    for skipped in ("node_modules", ".git", "build", "public", ".next", "app/dist"):
        assert skipped not in contents.calls


def test_path_failures_are_swallowed() -> None:
    contents = FakeRepoContents(
        {"good/a.py": "print(1)", "bad/b.py": "print(2)", "c.py": "print(3)"},
        failing={"bad", "c.py"},
    )
    payload = _walk(contents)

    assert payload.paths == ["good/a.py"]


def test_each_path_is_fetched_once() -> None:
    files = {f"pkg{i}/mod{j}.py": f"# {i}{j}" for i in range(5) for j in range(5)}
    contents = FakeRepoContents(files)
    payload = _walk(contents, concurrency=2)

    assert sorted(payload.paths) == sorted(files)
    assert len(contents.calls) == len(set(contents.calls))


def test_empty_repository_yields_empty_payload() -> None:
    payload = _walk(FakeRepoContents({"logo.svg": "<svg/>", "yarn.lock": ""}))
    assert not payload
    assert payload.render() == ""


def test_decode_body_handles_encodings() -> None:
    assert decode_body(FileBody(path="a", content="aGVsbG8=\n", encoding="base64")) == "hello"
    assert decode_body(FileBody(path="a", content="plain", encoding="")) == "plain"
    assert decode_body(FileBody(path="a", content="", encoding="none")) is None
