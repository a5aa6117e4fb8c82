"""
Terminating loops over paged listings and claim batches.

iter_message_pages / iter_messages
----------------------------------
Follow markers page after page. The loop ends when the service reports no
next marker, returns an empty page, or max_pages pages have been read, so an
empty queue never spins.

iter_claims
-----------
The consumer side of the producer/consumer pattern: claim a batch, hand it
to the caller, repeat. Ends when a claim comes back empty (the service has
nothing left to lease), when `stop` is set, or after max_batches batches.
The caller is expected to delete (or release) each batch before asking for
the next one.

Usage
-----
    async for batch in iter_claims(client, "jobs", ClaimParameters(limit=1)):
        for message in batch:
            await process(message.body)
            await client.delete_messages("jobs", message.id, message.claim_id)
"""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Protocol

from racq.domain.models import (
    ClaimedMessage,
    ClaimParameters,
    Message,
    MessagePage,
    MessageQuery,
)


class _PagedSource(Protocol):
    async def get_messages(
        self, queue_name: str, query: MessageQuery | None = None
    ) -> MessagePage: ...


class _ClaimSource(Protocol):
    async def claim_messages(
        self, queue_name: str, parameters: ClaimParameters | None = None
    ) -> list[ClaimedMessage] | None: ...


async def iter_message_pages(
    client: _PagedSource,
    queue_name: str,
    query: MessageQuery | None = None,
    *,
    max_pages: int | None = None,
) -> AsyncIterator[MessagePage]:
    """Yield non-empty pages, following markers until the last page."""
    query = query or MessageQuery()
    pages = 0
    while max_pages is None or pages < max_pages:
        page = await client.get_messages(queue_name, query)
        pages += 1
        if page.messages:
            yield page
        if page.is_last:
            return
        query = query.model_copy(update={"marker": page.marker})


async def iter_messages(
    client: _PagedSource,
    queue_name: str,
    query: MessageQuery | None = None,
    *,
    max_pages: int | None = None,
) -> AsyncIterator[Message]:
    """Yield every message across all pages."""
    async for page in iter_message_pages(client, queue_name, query, max_pages=max_pages):
        for message in page.messages:
            yield message


async def iter_claims(
    client: _ClaimSource,
    queue_name: str,
    parameters: ClaimParameters | None = None,
    *,
    stop: asyncio.Event | None = None,
    max_batches: int | None = None,
) -> AsyncIterator[list[ClaimedMessage]]:
    """Yield claimed batches until the queue has nothing left to claim."""
    batches = 0
    while max_batches is None or batches < max_batches:
        if stop is not None and stop.is_set():
            return
        batch = await client.claim_messages(queue_name, parameters)
        if not batch:
            return
        batches += 1
        yield batch
