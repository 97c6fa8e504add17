"""
Core types for Twitch Helix resources and PubSub messages.

Entities are immutable views over one wire payload. The full payload is kept in
`raw`; the client that produced an entity is kept as a private attribute that is
not a dataclass field, so it never shows up in `fields()`, `asdict()`, `repr()`
or `to_dict()`.
"""

import copy
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from twitch_client.core.client import MalformedPayload

if TYPE_CHECKING:
    from twitch_client.core.client import APIClient

T = TypeVar("T")


def _require(data: Any, path: str) -> Any:
    """Walk a dotted path through nested dicts, raising MalformedPayload on a miss."""
    current = data
    walked: list[str] = []
    for key in path.split("."):
        walked.append(key)
        if not isinstance(current, dict):
            raise MalformedPayload(f"Expected an object at '{'.'.join(walked[:-1]) or '<root>'}'", path=path)
        if key not in current:
            raise MalformedPayload(f"Missing field '{'.'.join(walked)}'", path=path)
        current = current[key]
    return current


def _attach_client(entity: Any, client: "APIClient | None") -> None:
    # not a dataclass field, so it has to bypass the frozen __setattr__
    object.__setattr__(entity, "_client", client)


# =============================================================================
# Pagination
# =============================================================================


@dataclass(frozen=True)
class Pagination:
    """Options for a single page request."""

    after: str | None = None
    before: str | None = None
    limit: int | None = None


@dataclass
class PaginatedResult(Generic[T]):
    """One page of results plus the cursor to the next page."""

    data: list[T]
    cursor: str | None = None

    @property
    def has_more(self) -> bool:
        """Check if there may be more results."""
        return self.cursor is not None


# =============================================================================
# Game Types
# =============================================================================


class GameFilter(Enum):
    """Which query parameter carries the values of a game lookup."""

    ID = "id"
    NAME = "name"
    IGDB_ID = "igdb_id"


@dataclass(frozen=True)
class HelixGame:
    """A game (category) on Twitch."""

    id: str
    name: str
    box_art_url: str
    igdb_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any], client: "APIClient | None" = None) -> "HelixGame":
        """Create from API response dict."""
        game = cls(
            id=_require(data, "id"),
            name=_require(data, "name"),
            box_art_url=_require(data, "box_art_url"),
            # igdb_id is an empty string for categories without an IGDB entry
            igdb_id=data.get("igdb_id") or None,
            raw=copy.deepcopy(data),
        )
        _attach_client(game, client)
        return game

    def box_art_url_for(self, width: int, height: int) -> str:
        """Get the box art URL for a specific size."""
        return self.box_art_url.replace("{width}", str(width)).replace("{height}", str(height))

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the wire representation."""
        return copy.deepcopy(self.raw)


# =============================================================================
# PubSub Types
# =============================================================================


class RedemptionStatus(str, Enum):
    """Status of a channel point redemption."""

    FULFILLED = "FULFILLED"
    UNFULFILLED = "UNFULFILLED"


@dataclass(frozen=True)
class PubSubRedemptionMessage:
    """
    A message that informs about a user redeeming a channel point reward.

    Built from the JSON carried by a `channel-points-channel-v1` PubSub message:
    `{"type": "reward-redeemed", "data": {"timestamp": ..., "redemption": {...}}}`.
    The whole shape is validated on construction. `user_input` is None when the
    reward took no input; an explicit JSON null is treated the same as a missing key.
    """

    redemption_id: str
    channel_id: str
    reward_id: str
    reward_channel_id: str
    reward_title: str
    reward_prompt: str
    reward_cost: int
    is_user_input_required: bool
    is_sub_only: bool
    user_id: str
    user_name: str
    redeemed_at: str
    status: RedemptionStatus
    timestamp: str
    user_input: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any], client: "APIClient | None" = None) -> "PubSubRedemptionMessage":
        """
        Create from a decoded PubSub message.

        Raises:
            MalformedPayload: If a required field is missing or the status is unknown

        """
        raw_status = _require(data, "data.redemption.status")
        try:
            status = RedemptionStatus(raw_status)
        except ValueError:
            raise MalformedPayload(f"Unknown redemption status: {raw_status!r}", path="data.redemption.status")

        redemption = data["data"]["redemption"]
        message = cls(
            redemption_id=_require(data, "data.redemption.id"),
            channel_id=_require(data, "data.redemption.channel_id"),
            reward_id=_require(data, "data.redemption.reward.id"),
            reward_channel_id=_require(data, "data.redemption.reward.channel_id"),
            reward_title=_require(data, "data.redemption.reward.title"),
            reward_prompt=_require(data, "data.redemption.reward.prompt"),
            reward_cost=_require(data, "data.redemption.reward.cost"),
            is_user_input_required=_require(data, "data.redemption.reward.is_user_input_required"),
            is_sub_only=_require(data, "data.redemption.reward.is_sub_only"),
            user_id=_require(data, "data.redemption.user.id"),
            user_name=_require(data, "data.redemption.user.display_name"),
            redeemed_at=_require(data, "data.redemption.redeemed_at"),
            status=status,
            timestamp=_require(data, "data.timestamp"),
            user_input=redemption.get("user_input"),
            raw=copy.deepcopy(data),
        )
        _attach_client(message, client)
        return message

    @classmethod
    def from_json(cls, text: str, client: "APIClient | None" = None) -> "PubSubRedemptionMessage":
        """Create from the JSON string carried in a PubSub frame's `data.message`."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedPayload(f"Invalid JSON message: {e}")
        return cls.from_dict(data, client)

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the wire representation."""
        return copy.deepcopy(self.raw)
