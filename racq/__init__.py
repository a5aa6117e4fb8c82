"""
racq — asyncio client for the Rackspace Cloud Queues API.

Authenticates against the identity endpoint, manages queues, posts and pages
through messages, and coordinates competing consumers through claims: a
claim is a time-bounded exclusive lease over a batch of messages, granted by
the service, that is either completed (delete with the claim id), extended
(update), released, or left to expire.

Quick start
-----------
    import asyncio
    from racq import ClaimParameters, ClientConfig, RacQClient, iter_claims

    async def main():
        config = ClientConfig(user_name="me", api_key="secret", region="ord")

        async with RacQClient(config) as q:
            await q.authenticate()
            await q.create_queue("jobs")

            # Produce
            await q.post_messages("jobs", [{"ttl": 300, "body": {"n": i}} for i in range(10)])

            # Consume until nothing is left to claim
            async for batch in iter_claims(q, "jobs", ClaimParameters(limit=5)):
                for message in batch:
                    print(message.body)
                    await q.delete_messages("jobs", message.id, message.claim_id)

    asyncio.run(main())

Token caching
-------------
Set ClientConfig.persisted_token_path to reuse a token across runs, or pass
any TokenStoragePort (S3TokenStorage, GCSTokenStorage, ...) as token_storage.

Architecture
------------
  domain/   — value types, configuration, exception hierarchy
  ports/    — Protocol interface for token storage
  core/     — executor, error classifier, wire decoding, client, loops
  adapters/ — token storage implementations
"""
from __future__ import annotations

from racq.adapters.token_storage.filesystem import LocalFileTokenStorage
from racq.adapters.token_storage.memory import InMemoryTokenStorage
from racq.core.classifier import Operation
from racq.core.client import RacQClient
from racq.core.paging import iter_claims, iter_message_pages, iter_messages
from racq.core.renewal import ClaimRenewer
from racq.domain.config import ClientConfig, Region
from racq.domain.errors import (
    AuthenticationError,
    ClaimNotFoundError,
    ErrorKind,
    MessageNotFoundError,
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    QueueNotFoundError,
    QueueServiceError,
    RacQError,
    RateLimitError,
    ServiceUnavailableError,
    TokenStorageError,
    UnexpectedStatusError,
    ValidationError,
)
from racq.domain.models import (
    AuthToken,
    ClaimedMessage,
    ClaimParameters,
    ClaimUpdate,
    Message,
    MessagePage,
    MessageQuery,
    NewMessage,
    QueueListQuery,
    Statistics,
)
from racq.ports.token_storage import TokenStoragePort

__all__ = [
    # Client
    "RacQClient",
    "ClientConfig",
    "Region",
    # Domain models
    "AuthToken",
    "Statistics",
    "Message",
    "ClaimedMessage",
    "MessagePage",
    "NewMessage",
    "MessageQuery",
    "QueueListQuery",
    "ClaimParameters",
    "ClaimUpdate",
    # Errors
    "RacQError",
    "NotAuthenticatedError",
    "TokenStorageError",
    "QueueServiceError",
    "ErrorKind",
    "Operation",
    "AuthenticationError",
    "PermissionDeniedError",
    "RateLimitError",
    "ValidationError",
    "NotFoundError",
    "QueueNotFoundError",
    "MessageNotFoundError",
    "ClaimNotFoundError",
    "ServiceUnavailableError",
    "UnexpectedStatusError",
    # Loops and helpers
    "iter_message_pages",
    "iter_messages",
    "iter_claims",
    "ClaimRenewer",
    # Port (for typing custom adapters)
    "TokenStoragePort",
    # Built-in token storage adapters
    "InMemoryTokenStorage",
    "LocalFileTokenStorage",
]
