from datetime import datetime, timedelta, timezone
from pathlib import Path

import pydantic
import pytest

from racq.domain.config import ClientConfig, Region
from racq.domain.models import (
    AuthToken,
    ClaimedMessage,
    ClaimParameters,
    ClaimUpdate,
    Message,
    MessagePage,
    NewMessage,
    Statistics,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# AuthToken
# ---------------------------------------------------------------------------


def test_token_valid_before_expiry():
    token = AuthToken(id="t", expires=NOW + timedelta(seconds=1))
    assert token.is_valid(NOW)


def test_token_invalid_at_expiry():
    token = AuthToken(id="t", expires=NOW)
    assert not token.is_valid(NOW)


def test_token_invalid_after_expiry():
    token = AuthToken(id="t", expires=NOW - timedelta(minutes=5))
    assert not token.is_valid(NOW)


def test_token_defaults_to_current_time():
    assert AuthToken(id="t", expires=datetime.now(timezone.utc) + timedelta(hours=1)).is_valid()
    assert not AuthToken(id="t", expires=datetime(2000, 1, 1, tzinfo=timezone.utc)).is_valid()


def test_token_parses_service_timestamp():
    token = AuthToken.model_validate({"id": "t", "expires": "2024-01-01T12:00:00.000Z"})
    assert token.expires == NOW


def test_naive_expiry_is_utc():
    token = AuthToken(id="t", expires=datetime(2024, 1, 1, 12, 0))
    assert token.expires.tzinfo is not None
    assert token.expires == NOW


def test_token_ignores_extra_fields():
    token = AuthToken.model_validate(
        {"id": "t", "expires": "2024-01-01T12:00:00Z", "tenant": {"id": "1"}}
    )
    assert token.id == "t"


def test_token_is_frozen():
    token = AuthToken(id="t", expires=NOW)
    with pytest.raises(pydantic.ValidationError):
        token.id = "other"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def test_statistics_start_at_zero():
    stats = Statistics()
    assert (stats.calls, stats.bytes_sent, stats.bytes_received) == (0, 0, 0)


def test_statistics_record_accumulates():
    stats = Statistics()
    stats.record(10, 100)
    stats.record(5, 0)
    assert stats.calls == 2
    assert stats.bytes_sent == 15
    assert stats.bytes_received == 100


# ---------------------------------------------------------------------------
# Messages and claims
# ---------------------------------------------------------------------------


def test_claimed_message_is_message():
    msg = ClaimedMessage(id="m1", claim_id="c1", body={"n": 1}, ttl=60, age=3)
    assert isinstance(msg, Message)
    assert msg.claim_id == "c1"


def test_message_page_defaults_to_last_page():
    page = MessagePage()
    assert page.messages == ()
    assert page.marker is None
    assert page.is_last


def test_message_page_with_marker_is_not_last():
    page = MessagePage(messages=(Message(id="m1"),), marker="5")
    assert not page.is_last


def test_empty_page_with_marker_is_last():
    assert MessagePage(marker="5").is_last


def test_claim_parameters_defaults():
    params = ClaimParameters()
    assert (params.limit, params.ttl, params.grace) == (10, 60, 60)


def test_claim_parameters_not_validated_against_service_bounds():
    params = ClaimParameters(limit=500, ttl=1)
    assert params.limit == 500


def test_claim_update_drops_unset_fields():
    assert ClaimUpdate(ttl=300).model_dump(exclude_none=True) == {"ttl": 300}


def test_new_message_body_is_opaque():
    msg = NewMessage(ttl=60, body=[1, "two", {"three": 3}])
    assert msg.body == [1, "two", {"three": 3}]


# ---------------------------------------------------------------------------
# ClientConfig
# ---------------------------------------------------------------------------


def test_config_defaults():
    config = ClientConfig()
    assert config.region is Region.DFW
    assert config.persisted_token_path is None
    assert config.queue_url == "https://dfw.queues.api.rackspacecloud.com/v1/queues"


def test_config_generates_distinct_client_ids():
    assert ClientConfig().client_id != ClientConfig().client_id


def test_config_region_from_string():
    config = ClientConfig(region="lon")  # type: ignore[arg-type]
    assert config.region is Region.LON
    assert config.queue_url.startswith("https://lon.")


def test_config_rejects_unknown_region():
    with pytest.raises(pydantic.ValidationError):
        ClientConfig(region="mars")  # type: ignore[arg-type]


def test_config_is_frozen():
    config = ClientConfig()
    with pytest.raises(pydantic.ValidationError):
        config.persisted_token_path = Path("/tmp/token.json")  # type: ignore[misc]


def test_with_changes_returns_new_config():
    config = ClientConfig(user_name="a")
    changed = config.with_changes(persisted_token_path="/tmp/token.json")
    assert changed.persisted_token_path == Path("/tmp/token.json")
    assert config.persisted_token_path is None
    assert changed.client_id == config.client_id


def test_from_dict_accepts_camel_case_keys():
    config = ClientConfig.from_dict(
        {
            "userName": "me",
            "apiKey": "secret",
            "region": "syd",
            "clientId": "3f2504e0-4f89-11d3-9a0c-0305e82c3301",
            "persistedTokenPath": "token.json",
        }
    )
    assert config.user_name == "me"
    assert config.api_key == "secret"
    assert config.region is Region.SYD
    assert config.client_id == "3f2504e0-4f89-11d3-9a0c-0305e82c3301"
    assert config.persisted_token_path == Path("token.json")


def test_api_key_not_in_repr():
    assert "secret" not in repr(ClientConfig(api_key="secret"))
