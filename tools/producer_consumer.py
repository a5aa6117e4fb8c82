#!/usr/bin/env -S uv run
"""
Producer/consumer demonstration for racq

Creates a scratch queue, posts jobs in batches of 10 from one producer, then
starts N consumers that each claim one message at a time, "process" it and
delete it with its claim id. Prints who processed what, per-client network
statistics, and deletes the queue afterwards.

Usage:
    uv run tools/producer_consumer.py --user me --api-key KEY
    uv run tools/producer_consumer.py --jobs 50 --consumers 5 --region ord
    RACKSPACE_USERNAME=me RACKSPACE_API_KEY=KEY uv run tools/producer_consumer.py
    uv run tools/producer_consumer.py --help
"""
# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "httpx>=0.27",
#     "pydantic>=2.0",
#     "typer>=0.9.0",
#     "rich>=13.0",
# ]
# ///

from __future__ import annotations

import asyncio
import logging
import sys
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from time import perf_counter

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

# Import racq from the local checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from racq import (
    ClaimParameters,
    ClientConfig,
    RacQClient,
    RacQError,
    Region,
    Statistics,
    iter_claims,
)

app = typer.Typer(
    help="Run a producer/consumer work queue against Rackspace Cloud Queues",
    add_completion=False,
)

logger = logging.getLogger("racq.tools.producer_consumer")


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------


@dataclass
class ConsumerResult:
    """What one consumer processed."""

    name: str
    client_id: str
    jobs: list[int] = field(default_factory=list)
    statistics: Statistics = field(default_factory=Statistics)
    elapsed: float = 0.0


# ---------------------------------------------------------------------------
# Producer / consumer
# ---------------------------------------------------------------------------


async def produce(client: RacQClient, queue_name: str, jobs: int, ttl: int) -> None:
    """Post `jobs` messages in batches of 10 (the service maximum)."""
    for start in range(0, jobs, 10):
        batch = [
            {"ttl": ttl, "body": {"job": n}}
            for n in range(start, min(start + 10, jobs))
        ]
        await client.post_messages(queue_name, batch)
        logger.info("posted jobs %d-%d", start, start + len(batch) - 1)


async def consume(
    name: str,
    config: ClientConfig,
    queue_name: str,
    claim_ttl: int,
    work_seconds: float,
) -> ConsumerResult:
    """Claim one message at a time until the queue has nothing left."""
    consumer_config = config.with_changes(client_id=str(uuid.uuid4()))
    async with RacQClient(consumer_config) as client:
        await client.authenticate()
        result = ConsumerResult(name=name, client_id=client.get_client_id())
        started = perf_counter()
        parameters = ClaimParameters(limit=1, ttl=claim_ttl, grace=60)
        async for batch in iter_claims(client, queue_name, parameters):
            for message in batch:
                await asyncio.sleep(work_seconds)
                await client.delete_messages(queue_name, message.id, message.claim_id)
                result.jobs.append(message.body["job"])
                logger.debug("%s finished job %s", name, message.body["job"])
        result.elapsed = perf_counter() - started
        result.statistics = client.get_statistics()
        return result


async def run(
    config: ClientConfig,
    queue_name: str,
    jobs: int,
    consumers: int,
    ttl: int,
    claim_ttl: int,
    work_seconds: float,
) -> tuple[list[ConsumerResult], Statistics]:
    async with RacQClient(config) as producer:
        await producer.authenticate()
        await producer.create_queue(queue_name)
        try:
            await produce(producer, queue_name, jobs, ttl)
            results = await asyncio.gather(
                *(
                    consume(f"consumer-{i + 1}", config, queue_name, claim_ttl, work_seconds)
                    for i in range(consumers)
                )
            )
            stats = await producer.get_queue_stats(queue_name)
            logger.info("queue stats after run: %s", stats.get("messages"))
        finally:
            await producer.delete_queue(queue_name)
        return list(results), producer.get_statistics()


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def format_results(
    results: list[ConsumerResult], producer: Statistics, jobs: int, queue_name: str
) -> None:
    console = Console()

    console.print()
    console.print(
        Panel(
            f"[bold cyan]Work queue results for {queue_name}[/bold cyan]",
            expand=False,
        )
    )
    console.print()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Client", style="cyan")
    table.add_column("Jobs", justify="right", style="green")
    table.add_column("Calls", justify="right")
    table.add_column("Sent", justify="right")
    table.add_column("Received", justify="right")
    table.add_column("Elapsed", justify="right")

    table.add_row(
        "producer",
        str(jobs),
        str(producer.calls),
        f"{producer.bytes_sent}B",
        f"{producer.bytes_received}B",
        "",
    )
    for result in results:
        table.add_row(
            result.name,
            str(len(result.jobs)),
            str(result.statistics.calls),
            f"{result.statistics.bytes_sent}B",
            f"{result.statistics.bytes_received}B",
            f"{result.elapsed:.2f}s",
        )
    console.print(table)

    processed = sorted(job for r in results for job in r.jobs)
    duplicates = len(processed) - len(set(processed))
    missing = sorted(set(range(jobs)) - set(processed))
    console.print()
    console.print(f"processed: {len(processed)}/{jobs}  duplicates: {duplicates}")
    if missing:
        console.print(f"[bold red]missing jobs: {missing}[/bold red]")
    console.print()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@app.command()
def main(
    user: str = typer.Option(
        ..., "--user", "-u", envvar="RACKSPACE_USERNAME", help="Rackspace user name"
    ),
    api_key: str = typer.Option(
        ..., "--api-key", "-k", envvar="RACKSPACE_API_KEY", help="Rackspace API key"
    ),
    region: Region = typer.Option(Region.DFW, "--region", "-r", help="Queue region"),
    queue_name: str = typer.Option(
        "", "--queue", "-q", help="Scratch queue name (default: racq-demo-<random>)"
    ),
    jobs: int = typer.Option(30, "--jobs", "-n", help="Number of jobs to post"),
    consumers: int = typer.Option(3, "--consumers", "-c", help="Number of consumers"),
    ttl: int = typer.Option(300, "--ttl", help="Message ttl in seconds"),
    claim_ttl: int = typer.Option(60, "--claim-ttl", help="Claim ttl in seconds"),
    work_seconds: float = typer.Option(
        0.1, "--work", help="Simulated processing time per job, in seconds"
    ),
    token_path: Path | None = typer.Option(
        None, "--token-path", help="Persist the auth token to this file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every request"),
) -> None:
    """
    Run one producer and N consumers against a scratch queue.

    Each consumer is a separate client (own client id) claiming one message
    at a time, so the service's claim exclusivity decides who gets which job.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    config = ClientConfig(
        user_name=user,
        api_key=api_key,
        region=region,
        persisted_token_path=token_path,
    )
    queue_name = queue_name or f"racq-demo-{uuid.uuid4().hex[:8]}"

    try:
        results, producer = asyncio.run(
            run(config, queue_name, jobs, consumers, ttl, claim_ttl, work_seconds)
        )
    except RacQError as e:
        print(f"\nError: {e}", file=sys.stderr)
        raise typer.Exit(code=1)

    format_results(results, producer, jobs, queue_name)


if __name__ == "__main__":
    app()
