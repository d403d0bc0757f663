"""Analyze-repository use case — the main orchestration pipeline.

This is the single entry point for the business logic.  It depends only on
the ports (:class:`RepoContents`, :class:`LlmGateway`) and the artifact
store; the interface layer injects concrete adapters at runtime.

Stages, terminal on the first failure::

    validate credentials → parse URL → walk → build prompt → invoke model
    → normalize → persist (best-effort) → respond
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from codelens.domain.entities import AnalysisRun
from codelens.domain.exceptions import (
    ConfigurationError,
    LlmError,
    NotFoundOrNoAccessError,
)
from codelens.domain.ports.llm_gateway import LlmGateway
from codelens.domain.ports.repo_contents import RepoContents
from codelens.domain.value_objects import RepositoryReference
from codelens.services.artifact_store import ArtifactStore, build_run_path, key_timestamp
from codelens.services.prompt_builder import build_prompt
from codelens.services.response_normalizer import normalize
from codelens.services.token_budget import fit_payload
from codelens.services.tree_walker import TreeWalker

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyzeRepoUseCase:
    """Orchestrates the full repo → analysis → storage pipeline.

    Parameters
    ----------
    repo_contents:
        Adapter that can list directories and fetch files from GitHub.
    llm_gateway:
        Adapter that can send a prompt to the model; ``None`` when the model
        credential is not configured.
    artifact_store:
        Where completed runs are written; ``None`` disables persistence.
    missing_credentials:
        Names of required credentials that are not configured.
    max_payload_tokens:
        Token budget for the repository payload.
    walk_concurrency:
        Maximum number of in-flight GitHub requests during the walk.
    model:
        Model name, used to pick the tokenizer.
    """

    def __init__(
        self,
        repo_contents: RepoContents,
        llm_gateway: LlmGateway | None,
        artifact_store: ArtifactStore | None = None,
        *,
        missing_credentials: Sequence[str] = (),
        max_payload_tokens: int = 100_000,
        walk_concurrency: int = 8,
        model: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._walker = TreeWalker(repo_contents, max_concurrency=walk_concurrency)
        self._llm = llm_gateway
        self._store = artifact_store
        self._missing = list(missing_credentials)
        self._max_tokens = max_payload_tokens
        self._model = model
        self._clock = clock

    # ── Public entry point ──────────────────────────────────────────────

    async def execute(self, repo_url: str) -> AnalysisRun:
        """Run the full pipeline and return the analysis with its storage path."""
        llm = self._validate_credentials()
        ref = RepositoryReference.from_url(repo_url)
        logger.info("Analyzing repository: %s", ref.full_name)

        payload = await self._walker.walk(ref)
        if not payload:
            logger.error("No files found for %s. Check permissions/URL.", ref.full_name)
            raise NotFoundOrNoAccessError(
                "No relevant code found in repository. "
                "Ensure it's public or your token has access."
            )

        payload = fit_payload(payload, self._max_tokens, self._model)
        if not payload:
            logger.error(
                "Token budget of %d left no file of %s to send", self._max_tokens, ref.full_name
            )
            raise NotFoundOrNoAccessError(
                "No relevant code fits in the configured token budget."
            )
        prompt = build_prompt(payload)

        raw = await llm.generate(prompt)
        if not raw:
            raise LlmError("Empty response from the model.")

        result = normalize(raw)

        created_at = self._clock()
        path = build_run_path(ref.owner, ref.name, created_at)
        if self._store is None:
            logger.warning("No artifact store configured, %s not persisted", path)
        else:
            await self._store.save_run(
                path,
                result,
                repo_url=repo_url,
                owner=ref.owner,
                name=ref.name,
                created_at=created_at,
            )

        return AnalysisRun(result=result, storage_path=path, timestamp=key_timestamp(created_at))

    def _validate_credentials(self) -> LlmGateway:
        llm = self._llm
        missing = list(self._missing)
        if llm is None and "OPENAI_API_KEY" not in missing:
            missing.append("OPENAI_API_KEY")
        if missing or llm is None:
            raise ConfigurationError(f"Missing {', '.join(missing)}")
        return llm
