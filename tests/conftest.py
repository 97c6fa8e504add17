"""Pytest configuration - loads .env for integration tests and provides shared fixtures."""

import copy
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from dotenv import load_dotenv

from twitch_client.core.client import APIClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


REDEMPTION_MESSAGE: dict[str, Any] = {
    "type": "reward-redeemed",
    "data": {
        "timestamp": "2019-11-12T01:29:34.98329743Z",
        "redemption": {
            "id": "9203c6f0-51b6-4d1d-a9ae-8eafdb0d6d47",
            "user": {
                "id": "30515034",
                "login": "davethecust",
                "display_name": "davethecust",
            },
            "channel_id": "30515034",
            "redeemed_at": "2019-12-11T18:52:53.128421623Z",
            "reward": {
                "id": "6ef17bb2-e5ae-432e-8b3f-5ac4dd774668",
                "channel_id": "30515034",
                "title": "hit a gleesh walk on stream",
                "prompt": "cleanside's finest \n",
                "cost": 10,
                "is_user_input_required": True,
                "is_sub_only": False,
            },
            "user_input": "yeooo",
            "status": "UNFULFILLED",
        },
    },
}


def make_game(game_id: str, name: str, igdb_id: str = "") -> dict[str, Any]:
    """Build a Helix game row."""
    return {
        "id": game_id,
        "name": name,
        "box_art_url": f"https://static-cdn.jtvnw.net/ttv-boxart/{game_id}-{{width}}x{{height}}.jpg",
        "igdb_id": igdb_id,
    }


@pytest.fixture
def redemption_message() -> dict[str, Any]:
    """A fresh copy of a channel point redemption message."""
    return copy.deepcopy(REDEMPTION_MESSAGE)


@pytest.fixture
def api_client() -> APIClient:
    """APIClient with credentials and a stubbed call_api."""
    client = APIClient(client_id="test-client-id", access_token="test-token")
    client.call_api = AsyncMock(return_value={"data": []})
    return client


def sent_query(client: APIClient, call: int = -1) -> dict[str, Any]:
    """Query mapping of a call made through the stubbed call_api."""
    options = client.call_api.await_args_list[call].args[0]
    return options.query or {}
