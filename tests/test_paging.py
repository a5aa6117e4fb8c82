import asyncio

from racq.core.paging import iter_claims, iter_message_pages, iter_messages
from racq.domain.models import (
    ClaimedMessage,
    ClaimParameters,
    Message,
    MessagePage,
    MessageQuery,
)

# ---------------------------------------------------------------------------
# Scripted sources
# ---------------------------------------------------------------------------


class _Pages:
    """Answers get_messages from a fixed list of pages, recording queries."""

    def __init__(self, *pages: MessagePage) -> None:
        self.pages = list(pages)
        self.queries: list[MessageQuery | None] = []

    async def get_messages(self, queue_name: str, query: MessageQuery | None = None) -> MessagePage:
        self.queries.append(query)
        return self.pages.pop(0) if self.pages else MessagePage()


class _Claims:
    def __init__(self, *batches: list[ClaimedMessage] | None) -> None:
        self.batches = list(batches)
        self.calls = 0

    async def claim_messages(
        self, queue_name: str, parameters: ClaimParameters | None = None
    ) -> list[ClaimedMessage] | None:
        self.calls += 1
        return self.batches.pop(0) if self.batches else None


def _page(*ids: str, marker: str | None = None) -> MessagePage:
    return MessagePage(messages=tuple(Message(id=i) for i in ids), marker=marker)


def _batch(*ids: str) -> list[ClaimedMessage]:
    return [ClaimedMessage(id=i, claim_id="c") for i in ids]


# ---------------------------------------------------------------------------
# iter_message_pages / iter_messages
# ---------------------------------------------------------------------------


async def test_follows_markers_until_last_page() -> None:
    source = _Pages(_page("a", "b", marker="2"), _page("c", marker="3"), _page())
    pages = [p async for p in iter_message_pages(source, "q", MessageQuery(limit=2))]

    assert [[m.id for m in p.messages] for p in pages] == [["a", "b"], ["c"]]
    assert [q.marker for q in source.queries] == [None, "2", "3"]
    assert all(q.limit == 2 for q in source.queries)


async def test_page_without_marker_ends_iteration() -> None:
    source = _Pages(_page("a", marker=None), _page("never"))
    ids = [m.id async for m in iter_messages(source, "q")]
    assert ids == ["a"]
    assert len(source.queries) == 1


async def test_empty_queue_terminates() -> None:
    source = _Pages()
    assert [p async for p in iter_message_pages(source, "q")] == []
    assert len(source.queries) == 1


async def test_max_pages_bounds_requests() -> None:
    source = _Pages(*(_page(str(i), marker=str(i)) for i in range(10)))
    ids = [m.id async for m in iter_messages(source, "q", max_pages=3)]
    assert ids == ["0", "1", "2"]
    assert len(source.queries) == 3


async def test_iter_messages_against_service(client, make_client, queue_name) -> None:
    for start in (0, 10, 20):
        await client.post_messages(
            queue_name, [{"ttl": 60, "body": start + i} for i in range(10)]
        )
    consumer = make_client()
    await consumer.authenticate()

    bodies = [m.body async for m in iter_messages(consumer, queue_name, MessageQuery(limit=7))]

    assert bodies == list(range(30))


# ---------------------------------------------------------------------------
# iter_claims
# ---------------------------------------------------------------------------


async def test_iter_claims_until_nothing_left() -> None:
    source = _Claims(_batch("a"), _batch("b", "c"), None, _batch("never"))
    batches = [b async for b in iter_claims(source, "q")]
    assert [[m.id for m in b] for b in batches] == [["a"], ["b", "c"]]
    assert source.calls == 3


async def test_iter_claims_empty_batch_ends_iteration() -> None:
    source = _Claims([], _batch("never"))
    assert [b async for b in iter_claims(source, "q")] == []


async def test_iter_claims_max_batches() -> None:
    source = _Claims(*(_batch(str(i)) for i in range(5)))
    batches = [b async for b in iter_claims(source, "q", max_batches=2)]
    assert len(batches) == 2
    assert source.calls == 2


async def test_iter_claims_stop_event() -> None:
    source = _Claims(*(_batch(str(i)) for i in range(5)))
    stop = asyncio.Event()
    seen = []
    async for batch in iter_claims(source, "q", stop=stop):
        seen.append(batch)
        stop.set()
    assert len(seen) == 1
    assert source.calls == 1


async def test_consumers_drain_queue_without_overlap(client, make_client, queue_name) -> None:
    await client.post_messages(queue_name, [{"ttl": 60, "body": i} for i in range(10)])

    async def consume() -> list[int]:
        consumer = make_client()
        await consumer.authenticate()
        done = []
        async for batch in iter_claims(consumer, queue_name, ClaimParameters(limit=1)):
            for message in batch:
                done.append(message.body)
                await consumer.delete_messages(queue_name, message.id, message.claim_id)
        return done

    results = await asyncio.gather(*(consume() for _ in range(3)))

    processed = [body for result in results for body in result]
    assert sorted(processed) == list(range(10))
    assert await client.get_queue_stats(queue_name) == {
        "messages": {"claimed": 0, "free": 0, "total": 0}
    }
