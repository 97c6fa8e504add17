"""
Twitch SDK - High-level client with nice ergonomics.

This layer provides a clean, typed interface for Helix resources and PubSub messages.
Built on top of the core APIClient.
"""

import logging
from collections.abc import Sequence
from typing import Any

import aiohttp

from twitch_client.core.client import (
    DEFAULT_TIMEOUT,
    APICallOptions,
    APIClient,
    HelixPaginatedRequest,
    MalformedPayload,
    ValidationError,
)
from twitch_client.core.types import (
    GameFilter,
    HelixGame,
    PaginatedResult,
    Pagination,
    PubSubRedemptionMessage,
)

logger = logging.getLogger(__name__)

# Helix accepts at most 100 lookup values and 100 rows per page
MAX_LOOKUP_VALUES = 100
MAX_PAGE_SIZE = 100

REDEMPTION_TOPIC = "channel-points-channel-v1"


class TwitchClient:
    """
    High-level Twitch API client with typed methods and nice ergonomics.

    Example:
        async with TwitchClient() as client:
            game = await client.helix.games.get_game_by_name("Hearthstone")

            async for game in client.helix.games.get_top_games_paginated():
                print(game.name)

            message = client.pubsub.decode_frame(frame)

    """

    def __init__(
        self,
        client_id: str | None = None,
        access_token: str | None = None,
        helix_url: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Initialize the Twitch client.

        Args:
            client_id: Twitch application client ID (or TWITCH_CLIENT_ID env var)
            access_token: OAuth access token (or TWITCH_ACCESS_TOKEN env var)
            helix_url: Helix base URL (or TWITCH_HELIX_URL env var)
            timeout: Request timeout in seconds
            session: Existing aiohttp session to share

        """
        self._client = APIClient(
            client_id=client_id,
            access_token=access_token,
            helix_url=helix_url,
            timeout=timeout,
            session=session,
        )

        # Sub-clients for the API families
        self.helix = HelixOperations(self._client)
        self.pubsub = PubSubOperations(self._client)

    async def __aenter__(self) -> "TwitchClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the underlying HTTP session."""
        await self._client.close()

    @property
    def client_id(self) -> str | None:
        """Get the configured client ID."""
        return self._client.client_id


class HelixOperations:
    """The Helix resource groups."""

    def __init__(self, client: APIClient):
        self._client = client
        self.games = GameOperations(client)


# =============================================================================
# Game Operations
# =============================================================================


def _check_limit(limit: int | None) -> None:
    if limit is not None and not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}")


class GameOperations:
    """
    The Helix API methods that deal with games.

    Reached as `client.helix.games` on a TwitchClient.
    """

    def __init__(self, client: APIClient):
        self._client = client

    async def get_games_by_ids(self, ids: Sequence[str]) -> list[HelixGame]:
        """
        Get games by their IDs.

        Args:
            ids: The game IDs to look up

        Returns:
            The games that exist, in the order Twitch returned them

        """
        return await self._get_games(GameFilter.ID, ids)

    async def get_games_by_names(self, names: Sequence[str]) -> list[HelixGame]:
        """
        Get games by their exact names.

        Args:
            names: The game names to look up

        Returns:
            The games that exist, in the order Twitch returned them

        """
        return await self._get_games(GameFilter.NAME, names)

    async def get_games_by_igdb_ids(self, igdb_ids: Sequence[str]) -> list[HelixGame]:
        """Get games by their IGDB IDs."""
        return await self._get_games(GameFilter.IGDB_ID, igdb_ids)

    async def get_game_by_id(self, game_id: str) -> HelixGame | None:
        """
        Get a game by ID.

        Returns:
            The game, or None if no game has this ID

        """
        games = await self._get_games(GameFilter.ID, [game_id])
        return games[0] if games else None

    async def get_game_by_name(self, name: str) -> HelixGame | None:
        """
        Get a game by name.

        Returns:
            The game, or None if no game has this name

        """
        games = await self._get_games(GameFilter.NAME, [name])
        return games[0] if games else None

    async def get_top_games(self, pagination: Pagination | None = None) -> PaginatedResult[HelixGame]:
        """
        Get one page of the most viewed games at the moment.

        Args:
            pagination: Cursor and page size options

        Returns:
            PaginatedResult with the games and the cursor of the next page

        """
        pagination = pagination or Pagination()
        _check_limit(pagination.limit)

        query: dict[str, Any] = {}
        if pagination.after is not None:
            query["after"] = pagination.after
        if pagination.before is not None:
            query["before"] = pagination.before
        if pagination.limit is not None:
            query["first"] = pagination.limit

        result = await self._client.call_api(APICallOptions(url="games/top", query=query))
        return PaginatedResult(
            data=[self._parse(item) for item in result.get("data") or []],
            cursor=(result.get("pagination") or {}).get("cursor") or None,
        )

    def get_top_games_paginated(self, limit: int | None = None) -> HelixPaginatedRequest[HelixGame]:
        """
        Create a paginator for the most viewed games at the moment.

        Args:
            limit: Games per page

        Returns:
            HelixPaginatedRequest yielding HelixGame objects

        """
        _check_limit(limit)
        return self._client.paginate(APICallOptions(url="games/top"), self._parse, limit=limit)

    def _parse(self, data: dict[str, Any]) -> HelixGame:
        return HelixGame.from_dict(data, self._client)

    async def _get_games(self, filter_type: GameFilter, values: Sequence[str]) -> list[HelixGame]:
        if isinstance(values, str):
            raise ValidationError("Expected a sequence of strings, not a single string")
        values = list(values)
        if not values:
            raise ValidationError(f"At least one {filter_type.value} is required")
        if len(values) > MAX_LOOKUP_VALUES:
            raise ValidationError(
                f"At most {MAX_LOOKUP_VALUES} values can be looked up at once",
                details={"count": len(values)},
            )

        result = await self._client.call_api(
            APICallOptions(url="games", query={filter_type.value: values})
        )
        return [self._parse(item) for item in result.get("data") or []]


# =============================================================================
# PubSub Operations
# =============================================================================


class PubSubOperations:
    """Decoders for messages received over a PubSub connection."""

    def __init__(self, client: APIClient):
        self._client = client

    def decode_redemption(self, message: dict[str, Any] | str) -> PubSubRedemptionMessage:
        """
        Decode a channel point redemption message.

        Args:
            message: The decoded message dict, or its JSON string

        Returns:
            PubSubRedemptionMessage

        """
        if isinstance(message, str):
            return PubSubRedemptionMessage.from_json(message, self._client)
        return PubSubRedemptionMessage.from_dict(message, self._client)

    def decode_frame(self, frame: dict[str, Any]) -> PubSubRedemptionMessage:
        """
        Decode a full PubSub `MESSAGE` frame.

        Args:
            frame: `{"type": "MESSAGE", "data": {"topic": ..., "message": "<json>"}}`

        Returns:
            The decoded message for the frame's topic

        Raises:
            ValidationError: If the frame is not a MESSAGE or its topic has no decoder
            MalformedPayload: If the frame or its message is malformed

        """
        if not isinstance(frame, dict):
            raise MalformedPayload("Expected a PubSub frame object")
        if frame.get("type") != "MESSAGE":
            raise ValidationError(f"Not a MESSAGE frame: {frame.get('type')!r}")

        data = frame.get("data")
        if not isinstance(data, dict) or "topic" not in data or "message" not in data:
            raise MalformedPayload("MESSAGE frame without topic and message", path="data")

        topic = str(data["topic"])
        # Topics look like "channel-points-channel-v1.<channel_id>"
        if topic.split(".", 1)[0] != REDEMPTION_TOPIC:
            raise ValidationError(f"No decoder for topic: {topic}")

        logger.debug("Decoding %s message", topic)
        return self.decode_redemption(data["message"])
