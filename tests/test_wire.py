import pytest

from racq.core import wire
from racq.domain.models import (
    ClaimParameters,
    MessageQuery,
    NewMessage,
    QueueListQuery,
)

LISTING = {
    "links": [
        {"rel": "next", "href": "/v1/queues/fizbit/messages?marker=6244-244224-783&limit=10"}
    ],
    "messages": [
        {
            "href": "/v1/queues/fizbit/messages/50b68a50d6f5b8c8a7c62b01",
            "ttl": 800,
            "age": 790,
            "body": {"event": "ActivateAccount", "mode": "active"},
        },
        {
            "href": "/v1/queues/fizbit/messages/50b68a50d6f5b8c8a7c62b02",
            "ttl": 800,
            "age": 790,
            "body": "plain string body",
        },
    ],
}

CLAIM_HREF = "/v1/queues/fizbit/messages/50b68a50d6f5b8c8a7c62b01?claim_id=a28ee94e6cb134"

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def test_query_params_none_is_empty():
    assert wire.query_params(None) == {}


def test_query_params_drop_unset_fields():
    assert wire.query_params(MessageQuery(limit=5)) == {"limit": "5"}


def test_query_params_render_booleans_lowercase():
    params = wire.query_params(MessageQuery(echo=True, include_claimed=False))
    assert params == {"echo": "true", "include_claimed": "false"}


def test_query_params_for_queue_listing():
    params = wire.query_params(QueueListQuery(limit=2, marker="abc", detailed=True))
    assert params == {"limit": "2", "marker": "abc", "detailed": "true"}


def test_query_params_claim_parameters():
    assert wire.query_params(ClaimParameters()) == {"limit": "10", "ttl": "60", "grace": "60"}


def test_join_ids_string_passthrough():
    assert wire.join_ids("a,b") == "a,b"


def test_join_ids_sequence():
    assert wire.join_ids(["a", "b", "c"]) == "a,b,c"


@pytest.mark.parametrize("ids", ["", [], ",", [""]])
def test_join_ids_rejects_empty(ids):
    with pytest.raises(ValueError, match="at least one id"):
        wire.join_ids(ids)


def test_is_bulk():
    assert wire.is_bulk("a,b")
    assert not wire.is_bulk("a")


def test_single_message_is_wrapped_in_batch():
    assert wire.encode_new_messages({"ttl": 60, "body": {"n": 1}}) == [
        {"ttl": 60, "body": {"n": 1}}
    ]


def test_single_model_is_wrapped_in_batch():
    assert wire.encode_new_messages(NewMessage(ttl=60, body="x")) == [{"ttl": 60, "body": "x"}]


def test_batch_keeps_order():
    batch = wire.encode_new_messages([NewMessage(ttl=60, body=i) for i in range(3)])
    assert [m["body"] for m in batch] == [0, 1, 2]


def test_batch_is_not_validated():
    assert wire.encode_new_messages([{"ttl": 1}]) == [{"ttl": 1}]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def test_resource_id_is_last_path_segment():
    assert wire.resource_id("/v1/queues/q/messages/abc") == "abc"


def test_resource_id_strips_query():
    assert wire.resource_id(CLAIM_HREF) == "50b68a50d6f5b8c8a7c62b01"


def test_resource_id_absolute_url():
    assert wire.resource_id("https://dfw.example.com/v1/queues/q/messages/abc/") == "abc"


def test_query_value_present():
    assert wire.query_value(CLAIM_HREF, "claim_id") == "a28ee94e6cb134"


def test_query_value_absent_is_none():
    assert wire.query_value("/v1/queues/q/messages/abc", "claim_id") is None


def test_next_marker_from_links():
    assert wire.next_marker(LISTING["links"]) == "6244-244224-783"


def test_next_marker_without_next_link():
    assert wire.next_marker([{"rel": "self", "href": "/v1/queues/q?marker=1"}]) is None


def test_next_marker_without_links():
    assert wire.next_marker(None) is None
    assert wire.next_marker([]) is None


def test_next_marker_link_without_marker():
    assert wire.next_marker([{"rel": "next", "href": "/v1/queues/q/messages?limit=10"}]) is None


def test_decode_message_page():
    page = wire.decode_message_page(LISTING)
    assert page.marker == "6244-244224-783"
    assert [m.id for m in page.messages] == [
        "50b68a50d6f5b8c8a7c62b01",
        "50b68a50d6f5b8c8a7c62b02",
    ]
    first = page.messages[0]
    assert first.body == {"event": "ActivateAccount", "mode": "active"}
    assert (first.ttl, first.age) == (800, 790)


def test_decode_message_page_empty_payload():
    page = wire.decode_message_page(None)
    assert page.messages == ()
    assert page.marker is None


def test_decode_message_page_without_links_is_last():
    page = wire.decode_message_page({"messages": LISTING["messages"]})
    assert page.marker is None
    assert page.is_last


def test_decode_messages_single_object():
    [message] = wire.decode_messages(LISTING["messages"][0])
    assert message.id == "50b68a50d6f5b8c8a7c62b01"


def test_decode_messages_list():
    messages = wire.decode_messages(LISTING["messages"])
    assert len(messages) == 2


def test_decode_messages_wrapped_list():
    messages = wire.decode_messages({"messages": LISTING["messages"]})
    assert len(messages) == 2


def test_decode_messages_empty():
    assert wire.decode_messages(None) == []
    assert wire.decode_messages([]) == []


def test_decode_claimed_messages():
    [message] = wire.decode_claimed_messages(
        [{"href": CLAIM_HREF, "ttl": 300, "age": 1, "body": {"n": 3}}]
    )
    assert message.id == "50b68a50d6f5b8c8a7c62b01"
    assert message.claim_id == "a28ee94e6cb134"
    assert message.body == {"n": 3}


def test_decode_claimed_messages_falls_back_to_queried_claim():
    [message] = wire.decode_claimed_messages(
        [{"href": "/v1/queues/q/messages/m1", "ttl": 60, "age": 0, "body": None}],
        claim_id="c9",
    )
    assert message.claim_id == "c9"


def test_decode_claim_resource():
    payload = {
        "age": 19,
        "ttl": 300,
        "href": "/v1/queues/fizbit/claims/a28ee94e6cb134",
        "messages": [{"href": CLAIM_HREF, "ttl": 300, "age": 19, "body": {}}],
    }
    messages = wire.decode_claim(payload, "a28ee94e6cb134")
    assert [m.claim_id for m in messages] == ["a28ee94e6cb134"]


def test_decode_claim_without_messages():
    assert wire.decode_claim({"age": 0, "ttl": 60}, "c") == []
