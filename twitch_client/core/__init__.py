"""
Core layer - Raw types and HTTP client.

This layer provides:
- Typed, immutable views over Helix and PubSub payloads
- Low-level async HTTP client with auth, error handling and cursor pagination
"""

from twitch_client.core.client import (
    APICallOptions,
    APICallType,
    APIClient,
    APIError,
    HelixPaginatedRequest,
    MalformedPayload,
    TwitchError,
    ValidationError,
)
from twitch_client.core.types import (
    GameFilter,
    HelixGame,
    PaginatedResult,
    Pagination,
    PubSubRedemptionMessage,
    RedemptionStatus,
)

__all__ = [
    "APICallOptions",
    "APICallType",
    "APIClient",
    "APIError",
    "GameFilter",
    "HelixGame",
    "HelixPaginatedRequest",
    "MalformedPayload",
    "PaginatedResult",
    "Pagination",
    "PubSubRedemptionMessage",
    "RedemptionStatus",
    "TwitchError",
    "ValidationError",
]
