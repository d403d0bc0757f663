"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from codelens.domain.entities import AnalysisResult, Finding, HistoryEntry


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FindingSchema(BaseModel):
    type: Literal["security", "performance", "quality"]
    severity: Literal["low", "medium", "high"]
    description: str

    @classmethod
    def from_entity(cls, finding: Finding) -> FindingSchema:
        return cls(**finding.to_dict())


class AnalyzeRequest(_CamelModel):
    """Request body for ``POST /analyze``."""

    repo_url: str = Field(alias="repoUrl")

    @field_validator("repo_url")
    @classmethod
    def _must_not_be_empty(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "Repository URL is required"
            raise ValueError(msg)
        return stripped


class AnalysisResponse(_CamelModel):
    """An analysis result in the original wire shape."""

    summary: str
    documentation: str
    mermaid: str
    analysis: list[FindingSchema]
    storage_path: str = Field(alias="storagePath")

    @staticmethod
    def _fields(result: AnalysisResult) -> dict[str, object]:
        return {
            "summary": result.summary,
            "documentation": result.documentation,
            "mermaid": result.diagram,
            "analysis": [FindingSchema.from_entity(f) for f in result.findings],
        }


class AnalyzeResponse(AnalysisResponse):
    """Successful response from ``POST /analyze``."""

    timestamp: str

    @classmethod
    def from_run(cls, result: AnalysisResult, storage_path: str, timestamp: str) -> AnalyzeResponse:
        return cls(storage_path=storage_path, timestamp=timestamp, **cls._fields(result))


class HistoryItemResponse(AnalysisResponse):
    """Response from ``POST /history`` (one stored run)."""

    repo_url: str | None = Field(default=None, alias="repoUrl")

    @classmethod
    def from_stored(
        cls, result: AnalysisResult, storage_path: str, repo_url: str | None
    ) -> HistoryItemResponse:
        return cls(storage_path=storage_path, repo_url=repo_url, **cls._fields(result))


class HistoryEntrySchema(_CamelModel):
    """One row of ``GET /history``."""

    id: str
    repo_name: str = Field(alias="repoName")
    timestamp: str
    summary: str
    path: str

    @classmethod
    def from_entity(cls, entry: HistoryEntry) -> HistoryEntrySchema:
        return cls(
            id=entry.id,
            repo_name=entry.repo_name,
            timestamp=entry.timestamp,
            summary=entry.summary,
            path=entry.path,
        )


class HistoryPathRequest(BaseModel):
    """Request body for ``POST /history`` and ``DELETE /history``."""

    path: str


class DeleteResponse(BaseModel):
    success: bool = True


class UploadRequest(_CamelModel):
    """Request body for ``POST /upload``: a client-held result to store."""

    summary: str = ""
    documentation: str = ""
    mermaid: str = ""
    analysis: list[FindingSchema] = Field(default_factory=list)
    repo_name: str | None = Field(default=None, alias="repoName")
    repo_url: str | None = Field(default=None, alias="repoUrl")


class UploadArtifacts(BaseModel):
    documentation: str
    mermaid: str
    metadata: str


class UploadResponse(_CamelModel):
    success: bool = True
    message: str = "Analysis artifacts saved successfully"
    storage_path: str = Field(alias="storagePath")
    artifacts: UploadArtifacts


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
