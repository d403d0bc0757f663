"""End-to-end tests for the analysis pipeline with in-memory collaborators."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from codelens.domain.exceptions import (
    ConfigurationError,
    InvalidInputError,
    LlmError,
    MalformedResponseError,
    NotFoundOrNoAccessError,
)
from codelens.services.analyze_repo import AnalyzeRepoUseCase
from codelens.services.artifact_store import ArtifactStore
from tests._fakes import FakeLlm, FakeRepoContents, InMemoryObjectStore, model_response

URL = "https://github.com/acme/widgets"
NOW = datetime(2026, 10, 19, 8, 0, 0, tzinfo=timezone.utc)

TREE = {
    "src/index.ts": "export const widgets = [];",
    "dist/bundle.js": "!function(){}()",
    "icon.png": "PNG",
}


def _use_case(
    contents: FakeRepoContents,
    llm: FakeLlm | None,
    store: ArtifactStore | None = None,
    **kwargs,
) -> AnalyzeRepoUseCase:
    return AnalyzeRepoUseCase(contents, llm, store, clock=lambda: NOW, **kwargs)


def test_payload_contains_only_relevant_files() -> None:
    contents = FakeRepoContents(TREE)
    llm = FakeLlm(model_response())

    run = asyncio.run(_use_case(contents, llm).execute(URL))

    (prompt,) = llm.prompts
    assert "FILE: src/index.ts" in prompt
    assert "export const widgets" in prompt
    assert "bundle.js" not in prompt
    assert "icon.png" not in prompt
    assert run.storage_path == "analysis/acme_widgets/2026-10-19T08-00-00-000Z"
    assert run.timestamp == "2026-10-19T08-00-00-000Z"


def test_fenced_diagram_is_cleaned() -> None:
    llm = FakeLlm(model_response(mermaid="```mermaid\nflowchart TD\nA-->B\n```"))
    run = asyncio.run(_use_case(FakeRepoContents(TREE), llm).execute(URL))
    assert run.result.diagram == "flowchart TD\nA-->B"


def test_non_github_url_makes_no_calls() -> None:
    contents = FakeRepoContents(TREE)
    llm = FakeLlm(model_response())

    with pytest.raises(InvalidInputError):
        asyncio.run(_use_case(contents, llm).execute("https://gitlab.com/acme/widgets"))

    assert contents.calls == []
    assert llm.prompts == []


def test_no_relevant_files_skips_the_model() -> None:
    contents = FakeRepoContents({"logo.png": "PNG", "node_modules/x/index.js": "x"})
    llm = FakeLlm(model_response())

    with pytest.raises(NotFoundOrNoAccessError):
        asyncio.run(_use_case(contents, llm).execute(URL))
    assert llm.prompts == []


def test_unreachable_repository_is_not_found() -> None:
    contents = FakeRepoContents(TREE, failing={""})
    with pytest.raises(NotFoundOrNoAccessError):
        asyncio.run(_use_case(contents, FakeLlm(model_response())).execute(URL))


@pytest.mark.parametrize(
    ("missing", "llm"),
    [(["GITHUB_TOKEN"], FakeLlm("{}")), ([], None), (["GITHUB_TOKEN", "OPENAI_API_KEY"], None)],
)
def test_missing_credentials_fail_fast(missing: list[str], llm: FakeLlm | None) -> None:
    contents = FakeRepoContents(TREE)
    use_case = _use_case(contents, llm, missing_credentials=missing)

    with pytest.raises(ConfigurationError) as excinfo:
        asyncio.run(use_case.execute(URL))

    assert "OPENAI_API_KEY" in str(excinfo.value) or "GITHUB_TOKEN" in str(excinfo.value)
    assert contents.calls == []


def test_empty_model_output_is_upstream_error() -> None:
    with pytest.raises(LlmError):
        asyncio.run(_use_case(FakeRepoContents(TREE), FakeLlm("")).execute(URL))


def test_malformed_model_output() -> None:
    llm = FakeLlm(model_response(documentation=None))
    with pytest.raises(MalformedResponseError):
        asyncio.run(_use_case(FakeRepoContents(TREE), llm).execute(URL))


def test_result_is_persisted() -> None:
    objects = InMemoryObjectStore()
    store = ArtifactStore(objects)

    run = asyncio.run(_use_case(FakeRepoContents(TREE), FakeLlm(model_response()), store).execute(URL))

    stored = asyncio.run(store.load(run.storage_path))
    assert stored.result == run.result
    assert stored.repo_url == URL


def test_storage_failure_does_not_fail_the_analysis() -> None:
    objects = InMemoryObjectStore(failing={".md", ".mmd", ".json"})
    run = asyncio.run(
        _use_case(FakeRepoContents(TREE), FakeLlm(model_response()), ArtifactStore(objects)).execute(URL)
    )

    assert run.result.summary.startswith("A widget toolkit")
    assert objects.objects == {}


def test_payload_is_capped_by_token_budget() -> None:
    tree = {f"src/m{i}.py": "x = 1\n" * 400 for i in range(10)}
    llm = FakeLlm(model_response())

    asyncio.run(_use_case(FakeRepoContents(tree), llm, max_payload_tokens=1_000).execute(URL))

    (prompt,) = llm.prompts
    assert prompt.count("FILE: ") < 10


def test_budget_too_small_for_any_file_skips_the_model() -> None:
    llm = FakeLlm(model_response())
    use_case = _use_case(FakeRepoContents(TREE), llm, max_payload_tokens=10)

    with pytest.raises(NotFoundOrNoAccessError):
        asyncio.run(use_case.execute(URL))

    assert llm.prompts == []
