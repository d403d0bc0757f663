"""Google Cloud Storage adapter — implements the ObjectStore port.

The google-cloud-storage client is synchronous; every call is pushed onto a
worker thread with :func:`asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
import logging

from google.api_core import exceptions
from google.cloud import storage
from google.oauth2 import service_account

from codelens.domain.exceptions import ArtifactNotFoundError, StorageError

logger = logging.getLogger(__name__)


def build_client(
    project_id: str | None = None,
    client_email: str | None = None,
    private_key: str | None = None,
) -> storage.Client:
    """Create a storage client from explicit service-account fields or ADC."""
    if client_email and private_key:
        credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "client_email": client_email,
                "private_key": private_key,
                "token_uri": "https://oauth2.googleapis.com/token",
                "project_id": project_id,
            }
        )
        return storage.Client(project=project_id, credentials=credentials)
    return storage.Client(project=project_id)


class GcsObjectStore:
    """Concrete ``ObjectStore`` backed by one GCS bucket."""

    def __init__(self, client: storage.Client, bucket_name: str) -> None:
        self._client = client
        self._bucket_name = bucket_name
        self._bucket = client.bucket(bucket_name)

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        blob = self._bucket.blob(key)
        try:
            await asyncio.to_thread(
                blob.upload_from_string, data, content_type=content_type
            )
        except exceptions.GoogleAPIError as exc:
            logger.error("GCS upload error for %s: %s", key, exc)
            raise StorageError(f"Upload failed for {key}") from exc
        return f"https://storage.googleapis.com/{self._bucket_name}/{key}"

    async def list(self, prefix: str) -> list[str]:
        def _names() -> list[str]:
            return [b.name for b in self._client.list_blobs(self._bucket_name, prefix=prefix)]

        try:
            return await asyncio.to_thread(_names)
        except exceptions.GoogleAPIError as exc:
            logger.error("GCS list error for %s: %s", prefix, exc)
            raise StorageError(f"Listing failed for {prefix}") from exc

    async def get(self, key: str) -> bytes:
        blob = self._bucket.blob(key)
        try:
            return await asyncio.to_thread(blob.download_as_bytes)
        except exceptions.NotFound as exc:
            raise ArtifactNotFoundError(f"Object not found: {key}") from exc
        except exceptions.GoogleAPIError as exc:
            logger.error("GCS fetch error for %s: %s", key, exc)
            raise StorageError(f"Download failed for {key}") from exc

    async def delete_by_prefix(self, prefix: str) -> None:
        def _delete() -> int:
            blobs = list(self._client.list_blobs(self._bucket_name, prefix=prefix))
            for blob in blobs:
                try:
                    blob.delete()
                except exceptions.NotFound:
                    logger.debug("Already gone: %s", blob.name)
            return len(blobs)

        try:
            count = await asyncio.to_thread(_delete)
        except exceptions.GoogleAPIError as exc:
            logger.error("GCS delete error for %s: %s", prefix, exc)
            raise StorageError(f"Delete failed for {prefix}") from exc
        logger.info("Deleted %d object(s) under gs://%s/%s", count, self._bucket_name, prefix)
