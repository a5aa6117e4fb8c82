"""
ClaimRenewer — async context manager that keeps a claim alive in the background.

A consumer whose processing may outlast the claim ttl wraps its work in
ClaimRenewer, which periodically extends the claim via update_claims.

Usage
-----
    batch = await client.claim_messages("jobs", ClaimParameters(ttl=120))
    claim_id = batch[0].claim_id

    async with ClaimRenewer(client, "jobs", claim_id, interval=timedelta(seconds=60)):
        await do_long_work(batch)

    for message in batch:
        await client.delete_messages("jobs", message.id, claim_id)

When the claim is gone (released, or already expired) renewal stops quietly.
Any other error raised by update_claims propagates out of __aexit__.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import timedelta
from types import TracebackType
from typing import Protocol

from racq.domain.errors import ClaimNotFoundError
from racq.domain.models import ClaimParameters, ClaimUpdate

logger = logging.getLogger(__name__)


class _HasUpdateClaims(Protocol):
    """Structural Protocol — any object with an async update_claims method."""

    async def update_claims(
        self,
        queue_name: str,
        claim_ids: str,
        parameters: ClaimUpdate | ClaimParameters,
    ) -> None: ...


@dataclasses.dataclass
class ClaimRenewer:
    """
    Periodically extends a single claim.

    Parameters
    ----------
    client     : any object with async update_claims(queue, claim_id, update)
    queue_name : queue the claim belongs to
    claim_id   : the claim to keep alive
    interval   : time between extensions (default 30 seconds)
    update     : ttl/grace sent with each extension (default ttl=60, grace=60)
    """

    client: _HasUpdateClaims
    queue_name: str
    claim_id: str
    interval: timedelta = timedelta(seconds=30)
    update: ClaimUpdate = dataclasses.field(
        default_factory=lambda: ClaimUpdate(ttl=60, grace=60)
    )

    _task: asyncio.Task[None] | None = dataclasses.field(
        default=None, init=False, repr=False
    )
    renewals: int = dataclasses.field(default=0, init=False)

    async def __aenter__(self) -> ClaimRenewer:
        self._task = asyncio.create_task(
            self._renew(), name=f"racq-claim-renewer-{self.claim_id}"
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _renew(self) -> None:
        while True:
            await asyncio.sleep(self.interval.total_seconds())
            try:
                await self.client.update_claims(self.queue_name, self.claim_id, self.update)
            except ClaimNotFoundError:
                logger.debug("claim %s is gone, renewal stopped", self.claim_id)
                return
            self.renewals += 1
