"""
TokenManager — the client's identity and its single authentication token slot.

The slot is private to one client instance. It is filled by a successful
credential exchange or by loading a persisted token, overwritten by every
fresh exchange, and emptied by clear() or a failed exchange. A token counts
only while it is valid (expires > now).

Persistence is optional and goes through a TokenStoragePort. The persisted
token is loaded once, lazily, the first time the slot is consulted. Write
failures surface as TokenStorageError; a stored token that cannot be decoded
is ignored with a warning.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import datetime

from pydantic import ValidationError as PydanticValidationError

from racq.core import codec
from racq.domain.models import AuthToken
from racq.ports.token_storage import TokenStoragePort

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class TokenManager:
    """
    Parameters
    ----------
    client_id : identifier sent as Client-ID; fixed for the instance lifetime
    storage   : optional token cache
    """

    client_id: str
    storage: TokenStoragePort | None = None

    _token: AuthToken | None = dataclasses.field(default=None, init=False, repr=False)
    _loaded: bool = dataclasses.field(default=False, init=False, repr=False)
    _load_lock: asyncio.Lock = dataclasses.field(
        default_factory=asyncio.Lock, init=False, repr=False
    )

    @property
    def token(self) -> AuthToken | None:
        """The token currently held, valid or not."""
        return self._token

    async def load(self) -> AuthToken | None:
        """
        Load the persisted token into the slot (first call only).

        Concurrent first callers wait on the same read. A token stored or a
        slot cleared while the read is pending wins over the persisted copy.
        """
        if self._loaded:
            return self._token
        async with self._load_lock:
            if self._loaded:
                return self._token
            persisted = await self._read_persisted()
            if not self._loaded:
                self._token = persisted
                self._loaded = True
        return self._token

    async def _read_persisted(self) -> AuthToken | None:
        if self.storage is None:
            logger.debug("no token storage configured")
            return None
        content = await self.storage.read()
        if not content:
            logger.debug("no persisted token found")
            return None
        try:
            token = codec.decode_token(content)
        except PydanticValidationError as exc:
            logger.warning("ignoring undecodable persisted token: %s", exc)
            return None
        logger.debug("token read from storage")
        return token

    async def valid_token(self, now: datetime | None = None) -> AuthToken | None:
        """The held token if it is still valid, otherwise None."""
        token = await self.load()
        if token is not None and token.is_valid(now):
            return token
        return None

    async def store(self, token: AuthToken) -> None:
        """Fill the slot and persist the token when storage is configured."""
        self._token = token
        self._loaded = True
        if self.storage is not None:
            await self.storage.write(codec.encode_token(token))
            logger.debug("token persisted")

    def clear(self) -> None:
        """Empty the slot. The persisted copy is not touched."""
        self._token = None
        self._loaded = True
