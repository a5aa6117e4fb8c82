"""
Wire format helpers: translate between the queue service's JSON resources and
the normalized domain models.

Message listing (GET .../messages)
----------------------------------
{
  "links": [{"rel": "next", "href": "/v1/queues/q/messages?marker=6244-244224-783&limit=10"}],
  "messages": [
    {"href": "/v1/queues/q/messages/50b68a50d6f5b8c8a7c62b01", "ttl": 800, "age": 790, "body": {...}}
  ]
}

  id     ← last path segment of "href" (query string stripped)
  marker ← "marker" query parameter of the link whose rel is "next";
           None when there is no such link or it carries no marker

Claimed message (POST .../claims, GET .../claims/<id>)
------------------------------------------------------
{"href": "/v1/queues/q/messages/50b68a50d6f5b8c8a7c62b01?claim_id=a28ee94e", "ttl": 800, "age": 790, "body": {...}}

  claim_id ← "claim_id" query parameter of "href"; falls back to the claim id
             the caller queried when the href does not carry one
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import httpx
from pydantic import BaseModel

from racq.domain.models import ClaimedMessage, Message, MessagePage, NewMessage

# ---------------------------------------------------------------------- #
# Requests                                                               #
# ---------------------------------------------------------------------- #


def query_params(query: BaseModel | None) -> dict[str, str]:
    """Render a query model as request parameters. None values are dropped."""
    if query is None:
        return {}
    params: dict[str, str] = {}
    for key, value in query.model_dump(exclude_none=True).items():
        params[key] = str(value).lower() if isinstance(value, bool) else str(value)
    return params


def join_ids(ids: str | Iterable[str]) -> str:
    """
    Accept one id, a comma-joined string, or a sequence of ids.

    Raises ValueError when no id is given: an empty id would address the
    whole collection instead of a member.
    """
    joined = ids if isinstance(ids, str) else ",".join(ids)
    if not joined.strip(", "):
        raise ValueError("at least one id is required")
    return joined


def is_bulk(ids: str) -> bool:
    return "," in ids


def encode_new_messages(
    messages: NewMessage | Mapping[str, Any] | Sequence[NewMessage | Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Normalize one message, or a sequence of them, into a batch for posting."""
    if isinstance(messages, (NewMessage, Mapping)):
        messages = [messages]
    return [
        m.model_dump(mode="json") if isinstance(m, NewMessage) else dict(m)
        for m in messages
    ]


# ---------------------------------------------------------------------- #
# Responses                                                              #
# ---------------------------------------------------------------------- #


def resource_id(href: str) -> str:
    """Last path segment of a resource link."""
    return httpx.URL(href).path.rstrip("/").rsplit("/", 1)[-1]


def query_value(href: str, key: str) -> str | None:
    """Value of a query parameter in a link, or None when absent or empty."""
    return httpx.URL(href).params.get(key) or None


def next_marker(links: Iterable[Mapping[str, Any]] | None) -> str | None:
    """Marker from the "next" navigation link, or None at the end of pages."""
    for link in links or ():
        if link.get("rel") == "next" and link.get("href"):
            return query_value(str(link["href"]), "marker")
    return None


def decode_message(item: Mapping[str, Any]) -> Message:
    return Message(
        id=resource_id(str(item["href"])),
        body=item.get("body"),
        ttl=item.get("ttl"),
        age=item.get("age"),
    )


def decode_message_page(payload: Mapping[str, Any] | None) -> MessagePage:
    """Decode a message listing. An empty or missing payload is the last page."""
    if not payload:
        return MessagePage()
    return MessagePage(
        messages=tuple(decode_message(m) for m in payload.get("messages") or ()),
        marker=next_marker(payload.get("links")),
    )


def decode_messages(payload: Any) -> list[Message]:
    """
    Decode a fetch-by-id response.

    A single-id fetch answers with one message object; a bulk fetch answers
    with a list (or an object wrapping a "messages" list). All become a list.
    """
    if not payload:
        return []
    if isinstance(payload, Mapping):
        if "messages" in payload:
            return [decode_message(m) for m in payload["messages"] or ()]
        return [decode_message(payload)]
    return [decode_message(m) for m in payload]


def decode_claimed_messages(
    items: Iterable[Mapping[str, Any]] | None,
    claim_id: str | None = None,
) -> list[ClaimedMessage]:
    result: list[ClaimedMessage] = []
    for item in items or ():
        href = str(item["href"])
        result.append(
            ClaimedMessage(
                id=resource_id(href),
                claim_id=query_value(href, "claim_id") or claim_id,
                body=item.get("body"),
                ttl=item.get("ttl"),
                age=item.get("age"),
            )
        )
    return result


def decode_claim(payload: Mapping[str, Any] | None, claim_id: str) -> list[ClaimedMessage]:
    """Decode a claim resource into its member messages."""
    if not payload:
        return []
    return decode_claimed_messages(payload.get("messages"), claim_id)
