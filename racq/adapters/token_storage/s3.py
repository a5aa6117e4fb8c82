"""
S3TokenStorage — token cache in an AWS S3 object, using aioboto3.

Install extras: pip install "racq[s3]"

Lets a fleet of consumers on different hosts share one token instead of each
exchanging credentials on start-up. Writes are unconditional: any freshly
issued token is as good as another.

Compatible with S3-compatible storage: MinIO, Cloudflare R2, Tigris, etc.
"""
from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from racq.domain.errors import TokenStorageError

if TYPE_CHECKING:
    from aioboto3 import Session as AioBoto3Session


@dataclasses.dataclass
class S3TokenStorage:
    """
    AWS S3 token cache.

    Parameters
    ----------
    bucket       : S3 bucket name
    key          : object key (e.g. "racq/token.json")
    session      : aioboto3.Session — created lazily from env vars if omitted
    region_name  : AWS region passed to the S3 client
    endpoint_url : custom endpoint for S3-compatible backends (e.g. MinIO)
    """

    bucket: str
    key: str
    session: AioBoto3Session | None = None
    region_name: str | None = None
    endpoint_url: str | None = None

    def _get_session(self) -> AioBoto3Session:
        if self.session is not None:
            return self.session
        try:
            import aioboto3  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "S3TokenStorage requires aioboto3. Install with: pip install 'racq[s3]'"
            ) from exc
        return aioboto3.Session()  # type: ignore[return-value]

    def _client_kwargs(self) -> dict[str, str]:
        """Build kwargs forwarded to the S3 client constructor."""
        kwargs: dict[str, str] = {}
        if self.region_name:
            kwargs["region_name"] = self.region_name
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        return kwargs

    async def read(self) -> bytes:
        """Read the token object. Returns b"" if the key does not exist."""
        session = self._get_session()
        try:
            async with session.client("s3", **self._client_kwargs()) as s3:  # type: ignore[attr-defined]
                try:
                    response = await s3.get_object(Bucket=self.bucket, Key=self.key)
                    content: bytes = await response["Body"].read()
                    return content
                except Exception as exc:
                    if _s3_error_code(exc) in ("NoSuchKey", "404"):
                        return b""
                    raise
        except TokenStorageError:
            raise
        except Exception as exc:
            raise TokenStorageError("S3 token read failed", exc) from exc

    async def write(self, content: bytes) -> None:
        """Unconditional put of the token object."""
        session = self._get_session()
        try:
            async with session.client("s3", **self._client_kwargs()) as s3:  # type: ignore[attr-defined]
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=self.key,
                    Body=content,
                    ContentType="application/json",
                )
        except Exception as exc:
            raise TokenStorageError("S3 token write failed", exc) from exc


def _s3_error_code(exc: Exception) -> str:
    """Extract the error code from a botocore ClientError, or return ''."""
    response = getattr(exc, "response", None)
    if isinstance(response, dict):
        error = response.get("Error", {})
        if isinstance(error, dict):
            code = error.get("Code", "")
            return str(code) if code else ""
    return ""
