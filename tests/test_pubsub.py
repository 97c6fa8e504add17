"""Tests for the PubSub redemption decoder and frame dispatch."""

import copy
import dataclasses
import json

import pytest

from twitch_client.core.client import APIClient, MalformedPayload, ValidationError
from twitch_client.core.types import PubSubRedemptionMessage, RedemptionStatus
from twitch_client.sdk import PubSubOperations


def make_frame(message: dict, topic: str = "channel-points-channel-v1.30515034") -> dict:
    return {"type": "MESSAGE", "data": {"topic": topic, "message": json.dumps(message)}}


class TestRedemptionMessage:
    def test_accessors_return_wire_values(self, redemption_message):
        message = PubSubRedemptionMessage.from_dict(redemption_message)
        redemption = redemption_message["data"]["redemption"]

        assert message.reward_id == redemption["reward"]["id"]
        assert message.redemption_id == redemption["id"]
        assert message.user_input == redemption["user_input"]
        assert message.user_id == redemption["user"]["id"]
        assert message.user_name == redemption["user"]["display_name"]

    def test_supplementary_fields(self, redemption_message):
        message = PubSubRedemptionMessage.from_dict(redemption_message)

        assert message.channel_id == "30515034"
        assert message.reward_title == "hit a gleesh walk on stream"
        assert message.reward_prompt == "cleanside's finest \n"
        assert message.reward_cost == 10
        assert message.is_user_input_required is True
        assert message.is_sub_only is False
        assert message.redeemed_at == "2019-12-11T18:52:53.128421623Z"
        assert message.timestamp == "2019-11-12T01:29:34.98329743Z"
        assert message.status is RedemptionStatus.UNFULFILLED

    def test_user_input_absent(self, redemption_message):
        del redemption_message["data"]["redemption"]["user_input"]
        message = PubSubRedemptionMessage.from_dict(redemption_message)
        assert message.user_input is None

    def test_user_input_null_is_absent(self, redemption_message):
        redemption_message["data"]["redemption"]["user_input"] = None
        message = PubSubRedemptionMessage.from_dict(redemption_message)
        assert message.user_input is None

    def test_reward_channel_id(self, redemption_message):
        message = PubSubRedemptionMessage.from_dict(redemption_message)
        assert message.reward_channel_id == redemption_message["data"]["redemption"]["reward"]["channel_id"]

    def test_user_input_empty_string_is_kept(self, redemption_message):
        redemption_message["data"]["redemption"]["user_input"] = ""
        message = PubSubRedemptionMessage.from_dict(redemption_message)
        assert message.user_input == ""

    def test_payload_is_not_mutated(self, redemption_message):
        before = copy.deepcopy(redemption_message)
        message = PubSubRedemptionMessage.from_dict(redemption_message)

        message.to_dict()["data"]["redemption"]["id"] = "changed"

        assert redemption_message == before
        assert message.redemption_id == before["data"]["redemption"]["id"]

    def test_raw_is_independent_of_input(self, redemption_message):
        message = PubSubRedemptionMessage.from_dict(redemption_message)

        redemption_message["data"]["redemption"]["reward"]["title"] = "changed"
        message.raw["data"]["timestamp"] = "changed"

        assert message.raw["data"]["redemption"]["reward"]["title"] != "changed"
        assert redemption_message["data"]["timestamp"] != "changed"

    @pytest.mark.parametrize(
        "path",
        [
            ("data", "timestamp"),
            ("data", "redemption", "id"),
            ("data", "redemption", "reward", "id"),
            ("data", "redemption", "reward", "channel_id"),
            ("data", "redemption", "user", "display_name"),
            ("data", "redemption", "status"),
        ],
    )
    def test_missing_field_fails_at_construction(self, redemption_message, path):
        parent = redemption_message
        for key in path[:-1]:
            parent = parent[key]
        del parent[path[-1]]

        with pytest.raises(MalformedPayload) as exc_info:
            PubSubRedemptionMessage.from_dict(redemption_message)

        assert exc_info.value.path.endswith(path[-1])

    def test_nested_object_replaced_by_scalar(self, redemption_message):
        redemption_message["data"]["redemption"]["user"] = "davethecust"
        with pytest.raises(MalformedPayload, match="Expected an object"):
            PubSubRedemptionMessage.from_dict(redemption_message)

    def test_unknown_status(self, redemption_message):
        redemption_message["data"]["redemption"]["status"] = "CANCELED"
        with pytest.raises(MalformedPayload, match="Unknown redemption status"):
            PubSubRedemptionMessage.from_dict(redemption_message)

    def test_from_json(self, redemption_message):
        message = PubSubRedemptionMessage.from_json(json.dumps(redemption_message))
        assert message.redemption_id == "9203c6f0-51b6-4d1d-a9ae-8eafdb0d6d47"

    def test_from_json_invalid(self):
        with pytest.raises(MalformedPayload, match="Invalid JSON"):
            PubSubRedemptionMessage.from_json("{not json")

    def test_client_reference_is_not_a_field(self, redemption_message):
        client = APIClient(client_id="cid", access_token="tok")
        message = PubSubRedemptionMessage.from_dict(redemption_message, client)

        assert message._client is client
        assert "_client" not in dataclasses.asdict(message)


class TestPubSubOperations:
    def setup_method(self):
        self.client = APIClient(client_id="cid", access_token="tok")
        self.pubsub = PubSubOperations(self.client)

    def test_decode_frame(self, redemption_message):
        message = self.pubsub.decode_frame(make_frame(redemption_message))

        assert message.user_name == "davethecust"
        assert message._client is self.client

    def test_decode_redemption_from_string(self, redemption_message):
        message = self.pubsub.decode_redemption(json.dumps(redemption_message))
        assert message.reward_cost == 10

    def test_frame_with_other_topic(self, redemption_message):
        frame = make_frame(redemption_message, topic="whispers.44322889")
        with pytest.raises(ValidationError, match="No decoder for topic"):
            self.pubsub.decode_frame(frame)

    def test_non_message_frame(self):
        with pytest.raises(ValidationError, match="Not a MESSAGE frame"):
            self.pubsub.decode_frame({"type": "PONG"})

    def test_frame_without_message(self):
        with pytest.raises(MalformedPayload):
            self.pubsub.decode_frame({"type": "MESSAGE", "data": {"topic": "channel-points-channel-v1.1"}})

    def test_frame_with_malformed_message(self):
        frame = {"type": "MESSAGE", "data": {"topic": "channel-points-channel-v1.1", "message": "{}"}}
        with pytest.raises(MalformedPayload):
            self.pubsub.decode_frame(frame)
