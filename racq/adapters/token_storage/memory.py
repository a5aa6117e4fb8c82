"""
InMemoryTokenStorage — process-local token cache for tests and examples.

Zero external dependencies. Safe for multiple coroutines in a single event
loop; NOT shared across processes.
"""
from __future__ import annotations

import asyncio
import dataclasses


@dataclasses.dataclass
class InMemoryTokenStorage:
    """
    Token cache backed by a bytes buffer.

    Parameters
    ----------
    initial_content : optional pre-populated bytes (useful for test setup)
    """

    initial_content: bytes = b""

    def __post_init__(self) -> None:
        self._content: bytes = self.initial_content
        self._writes: int = 0
        self._lock: asyncio.Lock = asyncio.Lock()

    @property
    def writes(self) -> int:
        """Number of successful write() calls."""
        return self._writes

    async def read(self) -> bytes:
        async with self._lock:
            return self._content

    async def write(self, content: bytes) -> None:
        async with self._lock:
            self._content = content
            self._writes += 1
