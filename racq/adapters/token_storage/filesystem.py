"""
LocalFileTokenStorage — token cache in a local JSON file.

The file holds the JSON-serialized token {id, expires}. Several processes on
one machine may share the path; reads take a shared fcntl.flock and writes an
exclusive one, so a reader never observes a half-written token.

POSIX-only (Linux, macOS). Not compatible with NFS or distributed filesystems:
use S3TokenStorage or GCSTokenStorage to share a token across machines.
"""

from __future__ import annotations

import asyncio
import dataclasses
import fcntl
import os
from pathlib import Path

from racq.domain.errors import TokenStorageError


@dataclasses.dataclass
class LocalFileTokenStorage:
    """
    Stores the token in a local file.

    Parameters
    ----------
    path : path to the token file (parent directory created on first write)
    """

    path: Path

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def read(self) -> bytes:
        """Return the file contents, or b"" if the file does not exist."""
        try:
            return await asyncio.to_thread(self._sync_read)
        except OSError as exc:
            raise TokenStorageError(f"reading {self.path} failed", exc) from exc

    async def write(self, content: bytes) -> None:
        """Replace the file contents under an exclusive lock."""
        try:
            await asyncio.to_thread(self._sync_write, content)
        except OSError as exc:
            raise TokenStorageError(f"writing {self.path} failed", exc) from exc

    # ------------------------------------------------------------------ #
    # Synchronous implementations (executed in a thread-pool worker)      #
    # ------------------------------------------------------------------ #

    def _sync_read(self) -> bytes:
        if not self.path.exists():
            return b""
        with open(self.path, "rb") as fh:
            fcntl.flock(fh, fcntl.LOCK_SH)
            try:
                return fh.read()
            finally:
                fcntl.flock(fh, fcntl.LOCK_UN)

    def _sync_write(self, content: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(str(self.path), os.O_RDWR | os.O_CREAT, 0o600)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            os.ftruncate(fd, 0)
            os.lseek(fd, 0, os.SEEK_SET)
            os.write(fd, content)
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)
