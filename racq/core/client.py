"""
RacQClient — async client for the Rackspace Cloud Queues API.

Every operation is a coroutine that returns its result or raises:

  - QueueServiceError subclasses for failure statuses, classified per
    operation (see classifier.py)
  - NotAuthenticatedError when no valid token is held; operations never
    re-authenticate on their own
  - httpx.TransportError subclasses, unchanged, for network failures

Claim protocol
--------------
    claim_messages  → leases up to `limit` unclaimed messages under a fresh
                      claim id; returns None (not an error) when nothing is
                      available
    query_claims    → current members of a claim; ClaimNotFoundError once the
                      claim has expired or been released
    update_claims   → extends ttl/grace, membership is unchanged
    release_claims  → returns the messages to the pool
    delete_messages(..., claim_id=...) → completes one claimed message

Mutual exclusion between consumers is enforced by the service. The client
keeps no claim state of its own, so nothing stale survives a release.
"""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping, Sequence
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from racq.adapters.token_storage.filesystem import LocalFileTokenStorage
from racq.core import wire
from racq.core.classifier import Operation, classify
from racq.core.executor import RequestExecutor
from racq.core.token import TokenManager
from racq.domain.config import ClientConfig
from racq.domain.errors import AuthenticationError, NotAuthenticatedError
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

logger = logging.getLogger(__name__)

CREDENTIALS_SCHEME = "RAX-KSKEY:apiKeyCredentials"

NewMessages = NewMessage | Mapping[str, Any] | Sequence[NewMessage | Mapping[str, Any]]


@dataclasses.dataclass
class RacQClient:
    """
    Parameters
    ----------
    config        : immutable client settings (credentials, region, client id...)
    http          : httpx.AsyncClient to send requests with; one is created
                    (and closed by aclose()) when omitted
    token_storage : token cache; defaults to a LocalFileTokenStorage when
                    config.persisted_token_path is set

    Usage
    -----
        async with RacQClient(ClientConfig(user_name="me", api_key="...")) as q:
            await q.authenticate()
            await q.create_queue("jobs")
            await q.post_messages("jobs", {"ttl": 300, "body": {"n": 1}})
            batch = await q.claim_messages("jobs", ClaimParameters(limit=5))
    """

    config: ClientConfig = dataclasses.field(default_factory=ClientConfig)
    http: httpx.AsyncClient | None = None
    token_storage: TokenStoragePort | None = None

    _owns_http: bool = dataclasses.field(default=False, init=False, repr=False)
    _executor: RequestExecutor = dataclasses.field(init=False, repr=False)
    _tokens: TokenManager = dataclasses.field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.http is None:
            self.http = httpx.AsyncClient(timeout=self.config.timeout)
            self._owns_http = True
        if self.token_storage is None and self.config.persisted_token_path is not None:
            self.token_storage = LocalFileTokenStorage(self.config.persisted_token_path)
        self._executor = RequestExecutor(self.http)
        self._tokens = TokenManager(self.config.client_id, self.token_storage)

    async def __aenter__(self) -> RacQClient:
        await self._tokens.load()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_http and self.http is not None:
            await self.http.aclose()

    # ------------------------------------------------------------------ #
    # Identity and authentication                                         #
    # ------------------------------------------------------------------ #

    def get_client_id(self) -> str:
        return self.config.client_id

    def get_statistics(self) -> Statistics:
        """The live accumulator; it keeps changing as calls are made."""
        return self._executor.statistics

    def delete_token(self) -> None:
        """Drop the held token so the next authenticate() hits the network."""
        self._tokens.clear()

    async def authenticate(
        self,
        user_name: str | None = None,
        api_key: str | None = None,
    ) -> AuthToken:
        """
        Make sure a valid token is held and return it.

        A held, unexpired token is reused without any network call. Otherwise
        credentials (the arguments, falling back to the configured ones) are
        exchanged at the identity endpoint and the new token is persisted.
        Any failure empties the token slot.
        """
        token = await self._tokens.valid_token()
        if token is not None:
            logger.debug("authenticate: reusing token valid until %s", token.expires)
            return token

        body = {
            "auth": {
                CREDENTIALS_SCHEME: {
                    "username": user_name if user_name is not None else self.config.user_name,
                    "apiKey": api_key if api_key is not None else self.config.api_key,
                }
            }
        }
        headers = {"Content-type": "application/json", "Accept": "application/json"}
        try:
            response = await self._executor.send(
                "POST", self.config.auth_url, headers=headers, json=body
            )
        except httpx.TransportError:
            self._tokens.clear()
            raise
        if response.status_code not in (200, 203):
            self._tokens.clear()
            logger.debug("authenticate: status code %d", response.status_code)
            raise classify(Operation.AUTHENTICATE, response.status_code)

        try:
            token = AuthToken.model_validate(response.json()["access"]["token"])
        except (KeyError, TypeError, ValueError, PydanticValidationError) as exc:
            self._tokens.clear()
            logger.debug("authenticate: no usable token in response: %s", exc)
            raise AuthenticationError(
                "Authentication response carried no usable token",
                Operation.AUTHENTICATE.value,
                response.status_code,
            ) from exc
        await self._tokens.store(token)
        logger.debug("authenticate: token valid until %s", token.expires)
        return token

    # ------------------------------------------------------------------ #
    # Queue operations                                                    #
    # ------------------------------------------------------------------ #

    async def list_queues(self, query: QueueListQuery | None = None) -> list[dict[str, Any]]:
        """Queue descriptors in the order the service returns them."""
        response = await self._call(
            Operation.LIST_QUEUES,
            "GET",
            self._queue_url(),
            success=(200, 204),
            params=wire.query_params(query),
        )
        if response.status_code == 204:
            return []
        queues: list[dict[str, Any]] = response.json().get("queues", [])
        return queues

    async def create_queue(self, queue_name: str) -> None:
        """Create a queue. Creating an existing queue (204) also succeeds."""
        response = await self._call(
            Operation.CREATE_QUEUE, "PUT", self._queue_url(queue_name), success=(201, 204)
        )
        if response.status_code == 204:
            logger.debug("queue %s already exists", queue_name)
        else:
            logger.debug("queue %s created", queue_name)

    async def delete_queue(self, queue_name: str) -> None:
        await self._call(
            Operation.DELETE_QUEUE, "DELETE", self._queue_url(queue_name), success=(200, 204)
        )
        logger.debug("queue %s deleted", queue_name)

    async def queue_exists(self, queue_name: str) -> bool:
        response = await self._call(
            Operation.QUEUE_EXISTS, "GET", self._queue_url(queue_name), success=(204, 404)
        )
        exists = response.status_code == 204
        logger.debug("queue %s exists: %s", queue_name, exists)
        return exists

    async def get_queue_stats(self, queue_name: str) -> dict[str, Any]:
        response = await self._call(
            Operation.GET_QUEUE_STATS,
            "GET",
            self._queue_url(queue_name, "stats"),
            success=(200,),
        )
        stats: dict[str, Any] = response.json()
        return stats

    async def set_queue_metadata(self, queue_name: str, metadata: Mapping[str, Any]) -> None:
        await self._call(
            Operation.SET_QUEUE_METADATA,
            "PUT",
            self._queue_url(queue_name, "metadata"),
            success=(200, 204),
            json=dict(metadata),
        )

    async def get_queue_metadata(self, queue_name: str) -> dict[str, Any]:
        response = await self._call(
            Operation.GET_QUEUE_METADATA,
            "GET",
            self._queue_url(queue_name, "metadata"),
            success=(200,),
        )
        metadata: dict[str, Any] = response.json()
        return metadata

    # ------------------------------------------------------------------ #
    # Message operations                                                  #
    # ------------------------------------------------------------------ #

    async def post_messages(self, queue_name: str, messages: NewMessages) -> None:
        """Post one message, or a batch of 1-10, as a single request."""
        batch = wire.encode_new_messages(messages)
        await self._call(
            Operation.POST_MESSAGES,
            "POST",
            self._queue_url(queue_name, "messages"),
            success=(200, 201),
            client_id=True,
            json=batch,
        )
        logger.debug("%d messages posted to %s", len(batch), queue_name)

    async def get_messages(
        self, queue_name: str, query: MessageQuery | None = None
    ) -> MessagePage:
        """
        One page of messages. Pass the returned marker in the next query to
        continue; a None marker means there are no further pages.
        """
        response = await self._call(
            Operation.GET_MESSAGES,
            "GET",
            self._queue_url(queue_name, "messages"),
            success=(200, 204),
            client_id=True,
            params=wire.query_params(query),
        )
        if response.status_code == 204:
            return MessagePage()
        page = wire.decode_message_page(response.json())
        logger.debug("%d messages retrieved from %s", len(page.messages), queue_name)
        return page

    async def get_messages_by_id(
        self, queue_name: str, message_ids: str | Iterable[str]
    ) -> list[Message]:
        """Fetch one or more messages; the result is always a list."""
        ids = wire.join_ids(message_ids)
        if wire.is_bulk(ids):
            url, params = self._queue_url(queue_name, "messages"), {"ids": ids}
        else:
            url, params = self._queue_url(queue_name, "messages", ids), {}
        response = await self._call(
            Operation.GET_MESSAGES_BY_ID,
            "GET",
            url,
            success=(200,),
            client_id=True,
            params=params,
        )
        return wire.decode_messages(response.json())

    async def delete_messages(
        self,
        queue_name: str,
        message_ids: str | Iterable[str],
        claim_id: str | None = None,
    ) -> None:
        """
        Delete one or more messages.

        claim_id is required to delete a claimed message and applies to a
        single message id. An empty id set raises ValueError without a request.
        """
        ids = wire.join_ids(message_ids)
        if wire.is_bulk(ids):
            url, params = self._queue_url(queue_name, "messages"), {"ids": ids}
        else:
            url, params = self._queue_url(queue_name, "messages", ids), {}
        if claim_id is not None:
            params["claim_id"] = claim_id
        await self._call(
            Operation.DELETE_MESSAGES,
            "DELETE",
            url,
            success=(200, 204),
            client_id=True,
            params=params,
        )
        logger.debug("%s deleted from %s", ids, queue_name)

    # ------------------------------------------------------------------ #
    # Claims                                                              #
    # ------------------------------------------------------------------ #

    async def claim_messages(
        self, queue_name: str, parameters: ClaimParameters | None = None
    ) -> list[ClaimedMessage] | None:
        """
        Lease up to parameters.limit unclaimed messages.

        Returns None when the queue has nothing to claim (204).
        """
        if parameters is None:
            parameters = ClaimParameters()
        response = await self._call(
            Operation.CLAIM_MESSAGES,
            "POST",
            self._queue_url(queue_name, "claims"),
            success=(201, 204),
            client_id=True,
            params={"limit": str(parameters.limit)},
            json=parameters.model_dump(),
        )
        if response.status_code == 204:
            logger.debug("claimMessages: no messages claimed from %s", queue_name)
            return None
        claimed = wire.decode_claimed_messages(response.json())
        logger.debug("claimMessages: %d messages claimed from %s", len(claimed), queue_name)
        return claimed

    async def query_claims(
        self, queue_name: str, claim_ids: str | Iterable[str]
    ) -> list[ClaimedMessage]:
        ids = wire.join_ids(claim_ids)
        response = await self._call(
            Operation.QUERY_CLAIMS,
            "GET",
            self._queue_url(queue_name, "claims", ids),
            success=(200,),
            client_id=True,
        )
        messages = wire.decode_claim(response.json(), ids)
        logger.debug("queryClaims: %d messages claimed under %s", len(messages), ids)
        return messages

    async def update_claims(
        self,
        queue_name: str,
        claim_ids: str | Iterable[str],
        parameters: ClaimUpdate | ClaimParameters,
    ) -> None:
        """Extend the ttl and/or grace of a claim."""
        await self._call(
            Operation.UPDATE_CLAIMS,
            "PATCH",
            self._queue_url(queue_name, "claims", wire.join_ids(claim_ids)),
            success=(200, 204),
            client_id=True,
            json=parameters.model_dump(exclude_none=True),
        )

    async def release_claims(self, queue_name: str, claim_ids: str | Iterable[str]) -> None:
        """Release a claim; its messages become claimable again."""
        ids = wire.join_ids(claim_ids)
        await self._call(
            Operation.RELEASE_CLAIMS,
            "DELETE",
            self._queue_url(queue_name, "claims", ids),
            success=(200, 204),
            client_id=True,
        )
        logger.debug("claim %s released", ids)

    # ------------------------------------------------------------------ #
    # Internals                                                           #
    # ------------------------------------------------------------------ #

    def _queue_url(self, *segments: str) -> str:
        return "/".join((self.config.queue_url, *segments))

    async def _headers(self, operation: Operation, client_id: bool) -> dict[str, str]:
        token = await self._tokens.valid_token()
        if token is None:
            raise NotAuthenticatedError(operation.value)
        headers = {
            "Content-type": "application/json",
            "Accept": "application/json",
            "X-Auth-Token": token.id,
        }
        if client_id:
            headers["Client-ID"] = self.config.client_id
        return headers

    async def _call(
        self,
        operation: Operation,
        method: str,
        url: str,
        *,
        success: tuple[int, ...],
        client_id: bool = False,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send an authenticated request; raise the classified error on failure."""
        headers = await self._headers(operation, client_id)
        response = await self._executor.send(
            method, url, headers=headers, params=params, json=json
        )
        if response.status_code not in success:
            logger.debug("%s: status code %d", operation.value, response.status_code)
            raise classify(operation, response.status_code)
        return response
