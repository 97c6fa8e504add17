"""
Core HTTP client for the Twitch APIs.

Handles authentication headers, request/response, cursor pagination and error handling.
"""

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Generic, TypeVar

import aiohttp

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_HELIX_URL = "https://api.twitch.tv/helix"
DEFAULT_AUTH_URL = "https://id.twitch.tv/oauth2"
DEFAULT_TIMEOUT = 30

T = TypeVar("T")


class TwitchError(Exception):
    """Base error class for client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class APIError(TwitchError):
    """API error with status code and message."""

    def __init__(self, message: str, status: int = 0, details: dict | None = None):
        super().__init__(message, details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        if self.status:
            result["status"] = self.status
        return result


class ValidationError(TwitchError):
    """Validation error for local input/data issues (not API errors)."""


class MalformedPayload(TwitchError):
    """A payload received from Twitch does not have the expected shape."""

    def __init__(self, message: str, path: str = "", details: dict | None = None):
        super().__init__(message, details)
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        if self.path:
            result["path"] = self.path
        return result


class APICallType(Enum):
    """The API family a call is sent to."""

    HELIX = "helix"
    AUTH = "auth"
    CUSTOM = "custom"


@dataclass(frozen=True)
class APICallOptions:
    """
    Descriptor of a single API call.

    Query values may be scalars, lists (sent as repeated parameters) or None (omitted).
    """

    url: str
    type: APICallType = APICallType.HELIX
    method: str = "GET"
    query: dict[str, Any] | None = None
    json: dict[str, Any] | None = None


class APIClient:
    """
    Low-level async HTTP client for the Twitch APIs.

    Handles:
    - Client ID and bearer token headers for Helix
    - Query serialization (repeated parameters for lists)
    - Error handling and response parsing
    - Cursor pagination for list endpoints
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
        Initialize the API client.

        Args:
            client_id: Twitch application client ID (or TWITCH_CLIENT_ID env var)
            access_token: OAuth access token (or TWITCH_ACCESS_TOKEN env var)
            helix_url: Helix base URL (or TWITCH_HELIX_URL env var)
            timeout: Request timeout in seconds
            session: Existing aiohttp session to use; it is not closed by this client

        """
        self.client_id = client_id or os.environ.get("TWITCH_CLIENT_ID")
        self.access_token = access_token or os.environ.get("TWITCH_ACCESS_TOKEN")
        self.helix_url = (helix_url or os.environ.get("TWITCH_HELIX_URL", DEFAULT_HELIX_URL)).rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    def _build_headers(self, call_type: APICallType) -> dict[str, str]:
        """Build request headers for the given API family."""
        headers = {"Accept": "application/json"}
        if call_type is APICallType.HELIX:
            if not self.client_id:
                raise APIError("TWITCH_CLIENT_ID environment variable not set")
            if not self.access_token:
                raise APIError("TWITCH_ACCESS_TOKEN environment variable not set")
            headers["Client-Id"] = self.client_id
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def _build_url(self, options: APICallOptions) -> str:
        """Build full URL from a call descriptor."""
        if options.type is APICallType.CUSTOM or options.url.startswith("http"):
            return options.url
        base = self.helix_url if options.type is APICallType.HELIX else DEFAULT_AUTH_URL
        return f"{base}/{options.url.lstrip('/')}"

    @staticmethod
    def build_query(query: dict[str, Any] | None) -> list[tuple[str, str]]:
        """
        Flatten a query mapping into (name, value) pairs.

        None values are dropped and list values become one pair per element.
        """
        params: list[tuple[str, str]] = []
        for name, value in (query or {}).items():
            values = value if isinstance(value, list | tuple) else [value]
            for item in values:
                if item is None:
                    continue
                if isinstance(item, bool):
                    item = "true" if item else "false"
                params.append((name, str(item)))
        return params

    async def call_api(self, options: APICallOptions) -> dict[str, Any]:
        """
        Make an HTTP request described by `options`.

        Args:
            options: The call descriptor

        Returns:
            Parsed JSON response

        Raises:
            APIError: On HTTP, connection or parsing errors

        """
        url = self._build_url(options)
        headers = self._build_headers(options.type)
        params = self.build_query(options.query)
        session = self._get_session()

        logger.debug("%s %s params=%s", options.method, url, params)

        try:
            async with session.request(
                options.method,
                url,
                params=params or None,
                json=options.json,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                body = await response.text()
                if response.status >= 400:
                    raise self._error_from_body(response.status, body)
                if body:
                    return json.loads(body)
                return {"success": True}

        # aiohttp.ServerTimeoutError is both a ClientError and a TimeoutError
        except asyncio.TimeoutError:
            raise APIError(f"Request timed out after {self.timeout} seconds")

        except aiohttp.ClientError as e:
            raise APIError(f"Connection error: {e}")

        except json.JSONDecodeError as e:
            raise APIError(f"Invalid JSON response: {e}")

    @staticmethod
    def _error_from_body(status: int, body: str) -> APIError:
        """Build an APIError from an error response body."""
        try:
            error_data = json.loads(body)
        except json.JSONDecodeError:
            return APIError(body or f"HTTP {status}", status=status)
        if not isinstance(error_data, dict):
            return APIError(f"HTTP {status}", status=status)
        # Helix errors look like {"error": "Bad Request", "status": 400, "message": "..."}
        message = error_data.get("message") or error_data.get("error") or f"HTTP {status}"
        return APIError(message, status=status, details=error_data)

    # =========================================================================
    # Pagination
    # =========================================================================

    def paginate(
        self,
        options: APICallOptions,
        parser: Callable[[dict[str, Any]], T],
        limit: int | None = None,
    ) -> "HelixPaginatedRequest[T]":
        """
        Create a paginator over a cursor-paginated endpoint.

        Args:
            options: Base call descriptor (cursor and page size are added per page)
            parser: Function to decode each row
            limit: Rows per page (`first`)

        Returns:
            HelixPaginatedRequest that fetches pages on demand

        """
        return HelixPaginatedRequest(self, options, parser, limit=limit)


class HelixPaginatedRequest(Generic[T]):
    """
    Lazily walks a cursor-paginated Helix endpoint, one call per page.

    The cursor only moves forward after a page was fetched and decoded, so a failed
    or cancelled fetch is retried from the same position by the next advance. The
    paginator cannot be rewound; create a new one to start over. Advancing the same
    instance from concurrent tasks is not supported and must be serialized by the caller.
    """

    def __init__(
        self,
        client: APIClient,
        options: APICallOptions,
        parser: Callable[[dict[str, Any]], T],
        limit: int | None = None,
    ):
        self._client = client
        self._options = options
        self._parser = parser
        self._limit = limit
        self._cursor: str | None = None
        self._current: list[T] = []
        self._finished = False

    @property
    def current(self) -> list[T]:
        """Rows of the last delivered page."""
        return self._current

    @property
    def current_cursor(self) -> str | None:
        return self._cursor

    @property
    def finished(self) -> bool:
        """Whether the upstream reported no further pages."""
        return self._finished

    async def get_next(self) -> list[T]:
        """
        Fetch and decode the next page.

        Returns:
            The page's rows, or an empty list once the listing is exhausted

        """
        if self._finished:
            return []

        query = dict(self._options.query or {})
        if self._limit is not None:
            query["first"] = self._limit
        if self._cursor is not None:
            query["after"] = self._cursor

        result = await self._client.call_api(replace(self._options, query=query))
        rows = [self._parser(item) for item in result.get("data") or []]
        cursor = (result.get("pagination") or {}).get("cursor")

        self._current = rows
        self._cursor = cursor
        self._finished = not cursor or not rows
        logger.debug("Fetched %d rows from %s (cursor=%s)", len(rows), self._options.url, cursor)
        return rows

    async def get_all(self) -> list[T]:
        """Fetch all remaining pages."""
        items: list[T] = []
        while not self._finished:
            items.extend(await self.get_next())
        return items

    async def __aiter__(self) -> AsyncIterator[T]:
        while not self._finished:
            for item in await self.get_next():
                yield item
