"""FastAPI dependency injection wiring."""

from __future__ import annotations

import logging

import httpx

from codelens.domain.exceptions import ConfigurationError
from codelens.infrastructure.config import get_settings
from codelens.infrastructure.gcs_adapter import GcsObjectStore, build_client
from codelens.infrastructure.github_rest_adapter import GitHubRestAdapter
from codelens.infrastructure.openai_adapter import OpenAIAdapter
from codelens.services.analyze_repo import AnalyzeRepoUseCase
from codelens.services.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

_http_client: httpx.AsyncClient | None = None
_openai_adapter: OpenAIAdapter | None = None
_artifact_store: ArtifactStore | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client, _openai_adapter, _artifact_store  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(30.0))

    if settings.openai_api_key:
        _openai_adapter = OpenAIAdapter(
            api_key=settings.openai_api_key.get_secret_value(),
            model=settings.openai_model,
        )

    if settings.gcs_bucket_name:
        client = build_client(
            project_id=settings.gcp_project_id,
            client_email=settings.gcp_client_email,
            private_key=settings.gcp_private_key_pem(),
        )
        _artifact_store = ArtifactStore(GcsObjectStore(client, settings.gcs_bucket_name))
    else:
        logger.warning(
            "GCS_BUCKET_NAME is not defined. Storage and history features are disabled."
        )

    missing = settings.missing_credentials()
    if missing:
        logger.warning("Analysis unavailable until configured: %s", ", ".join(missing))


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client, _openai_adapter, _artifact_store  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None
    if _openai_adapter:
        await _openai_adapter.close()
        _openai_adapter = None
    _artifact_store = None


def get_artifact_store() -> ArtifactStore:
    """Return the shared artifact store or fail with a configuration error."""
    if _artifact_store is None:
        raise ConfigurationError(
            "GCS_BUCKET_NAME is missing. Please set it in your environment variables."
        )
    return _artifact_store


def get_use_case() -> AnalyzeRepoUseCase:
    """Build the use-case with injected adapters."""
    settings = get_settings()

    assert _http_client is not None, "startup() was not called"

    token = settings.github_token.get_secret_value() if settings.github_token else None
    github_adapter = GitHubRestAdapter(client=_http_client, token=token)

    return AnalyzeRepoUseCase(
        repo_contents=github_adapter,
        llm_gateway=_openai_adapter,
        artifact_store=_artifact_store,
        missing_credentials=settings.missing_credentials(),
        max_payload_tokens=settings.max_payload_tokens,
        walk_concurrency=settings.walk_concurrency,
        model=settings.openai_model,
    )
