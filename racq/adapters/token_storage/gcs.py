"""
GCSTokenStorage — token cache in a Google Cloud Storage blob.

Install extras: pip install "racq[gcs]"

Note: google-cloud-storage is synchronous. All operations are wrapped in
asyncio.to_thread to avoid blocking the event loop.
"""
from __future__ import annotations

import asyncio
import dataclasses
from typing import TYPE_CHECKING

from racq.domain.errors import TokenStorageError

if TYPE_CHECKING:
    from google.cloud.storage import Client as GCSClient


def _gapi_exceptions():  # type: ignore[no-untyped-def]
    try:
        from google.api_core import exceptions as gapi_exc  # type: ignore[import-untyped]
    except ImportError as exc:
        raise ImportError(
            "GCSTokenStorage requires google-cloud-storage. "
            "Install with: pip install 'racq[gcs]'"
        ) from exc
    return gapi_exc


@dataclasses.dataclass
class GCSTokenStorage:
    """
    Google Cloud Storage token cache.

    Parameters
    ----------
    bucket_name : GCS bucket name
    blob_name   : blob path (e.g. "racq/token.json")
    client      : google.cloud.storage.Client — created lazily if omitted
    """

    bucket_name: str
    blob_name: str
    client: GCSClient | None = None

    def _get_client(self) -> GCSClient:
        if self.client is not None:
            return self.client
        try:
            from google.cloud import storage  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "GCSTokenStorage requires google-cloud-storage. "
                "Install with: pip install 'racq[gcs]'"
            ) from exc
        return storage.Client()  # type: ignore[return-value]

    async def read(self) -> bytes:
        """Read the token blob. Returns b"" if the blob does not exist."""
        try:
            return await asyncio.to_thread(self._sync_read)
        except TokenStorageError:
            raise
        except Exception as exc:
            raise TokenStorageError("GCS token read failed", exc) from exc

    async def write(self, content: bytes) -> None:
        """Overwrite the token blob."""
        try:
            await asyncio.to_thread(self._sync_write, content)
        except Exception as exc:
            raise TokenStorageError("GCS token write failed", exc) from exc

    # ------------------------------------------------------------------ #
    # Synchronous implementations (executed in a thread-pool worker)      #
    # ------------------------------------------------------------------ #

    def _sync_read(self) -> bytes:
        gapi_exc = _gapi_exceptions()
        blob = self._get_client().bucket(self.bucket_name).blob(self.blob_name)  # type: ignore[attr-defined]
        try:
            content: bytes = blob.download_as_bytes()
            return content
        except gapi_exc.NotFound:
            return b""

    def _sync_write(self, content: bytes) -> None:
        blob = self._get_client().bucket(self.bucket_name).blob(self.blob_name)  # type: ignore[attr-defined]
        blob.upload_from_string(content, content_type="application/json")  # type: ignore[attr-defined]
