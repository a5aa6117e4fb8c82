"""
TokenStoragePort — where an authentication token is cached between runs.

Any object satisfying this structural Protocol can act as the token cache.
No base class or registration is required.

Contract
--------
read()
  - Returns the stored bytes, or b"" if nothing has been stored yet.

write(content)
  - Replaces the stored bytes. Last writer wins: several clients sharing one
    cache simply overwrite each other with equally valid tokens.

Both raise TokenStorageError for I/O failures. The client does not catch it:
a failed persist surfaces from authenticate().
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenStoragePort(Protocol):
    """
    Minimal interface required by the token manager.

    Implementing adapters (built-in):
      - InMemoryTokenStorage       — for tests
      - LocalFileTokenStorage      — fcntl.flock-guarded local file
      - S3TokenStorage             — AWS S3 object (aioboto3)
      - GCSTokenStorage            — GCS blob (google-cloud-storage)
    """

    async def read(self) -> bytes:
        """Return the cached bytes, or b"" when the cache is empty."""
        ...

    async def write(self, content: bytes) -> None:
        """Replace the cached bytes."""
        ...
