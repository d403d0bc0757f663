from __future__ import annotations

import pytest

from codelens.services.artifact_store import ArtifactStore
from tests._fakes import InMemoryObjectStore


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def artifact_store(object_store: InMemoryObjectStore) -> ArtifactStore:
    """Artifact store over a fresh in-memory bucket."""
    return ArtifactStore(object_store)
