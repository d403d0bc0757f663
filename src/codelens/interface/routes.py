"""API routes — thin controllers that delegate to the services."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from codelens.domain.entities import AnalysisResult, Finding, FindingCategory, Severity
from codelens.domain.exceptions import InvalidInputError, StorageError
from codelens.interface.dependencies import get_artifact_store, get_use_case
from codelens.interface.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    DeleteResponse,
    HistoryEntrySchema,
    HistoryItemResponse,
    HistoryPathRequest,
    UploadArtifacts,
    UploadRequest,
    UploadResponse,
)
from codelens.services.analyze_repo import AnalyzeRepoUseCase
from codelens.services.artifact_store import ArtifactStore, build_run_path

router = APIRouter()

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={
        400: {"description": "Invalid GitHub URL"},
        404: {"description": "No relevant code found, or no access"},
        500: {"description": "Missing credentials"},
        502: {"description": "Model or GitHub failure"},
    },
)
async def analyze(
    body: AnalyzeRequest,
    use_case: AnalyzeRepoUseCase = Depends(get_use_case),
) -> AnalyzeResponse:
    """Analyze a GitHub repository and store the artifacts."""
    run = await use_case.execute(body.repo_url)
    return AnalyzeResponse.from_run(run.result, run.storage_path, run.timestamp)


@router.get("/history", response_model=list[HistoryEntrySchema])
async def list_history(
    store: ArtifactStore = Depends(get_artifact_store),
) -> list[HistoryEntrySchema]:
    """List stored runs, most recent first."""
    return [HistoryEntrySchema.from_entity(e) for e in await store.list_runs()]


@router.post("/history", response_model=HistoryItemResponse)
async def load_history_item(
    body: HistoryPathRequest,
    store: ArtifactStore = Depends(get_artifact_store),
) -> HistoryItemResponse:
    """Load one stored run."""
    stored = await store.load(body.path)
    return HistoryItemResponse.from_stored(stored.result, stored.path, stored.repo_url)


@router.delete("/history", response_model=DeleteResponse)
async def delete_history_item(
    body: HistoryPathRequest,
    store: ArtifactStore = Depends(get_artifact_store),
) -> DeleteResponse:
    """Delete every artifact of one stored run."""
    await store.delete(body.path)
    return DeleteResponse()


@router.post("/upload", response_model=UploadResponse)
async def upload(
    body: UploadRequest,
    store: ArtifactStore = Depends(get_artifact_store),
) -> UploadResponse:
    """Store a result the client already holds."""
    if not body.documentation or not body.mermaid:
        raise InvalidInputError("Insufficient data to save")

    owner, name = _split_repo_name(body.repo_name)
    created_at = datetime.now(timezone.utc)
    path = build_run_path(owner, name, created_at)

    result = AnalysisResult(
        summary=body.summary,
        documentation=body.documentation,
        diagram=body.mermaid,
        findings=tuple(
            Finding(
                category=FindingCategory(f.type),
                severity=Severity(f.severity),
                description=f.description,
            )
            for f in body.analysis
        ),
    )
    outcome = await store.save_run(
        path,
        result,
        repo_url=body.repo_url,
        owner=owner,
        name=name,
        created_at=created_at,
    )
    if not outcome.ok:
        raise StorageError(f"Failed to save to storage: {', '.join(sorted(outcome.failures))}")

    return UploadResponse(
        storage_path=path,
        artifacts=UploadArtifacts(**outcome.locators),
    )


def _split_repo_name(repo_name: str | None) -> tuple[str, str]:
    """``"owner/name"`` → sanitised (owner, name); anything else → ("unknown", …)."""
    if not repo_name or not repo_name.strip():
        return "unknown", "unknown_repo"
    owner, sep, name = repo_name.strip().partition("/")
    if not sep:
        return "unknown", _UNSAFE_NAME_CHARS.sub("_", owner)
    return _UNSAFE_NAME_CHARS.sub("_", owner), _UNSAFE_NAME_CHARS.sub("_", name)
