"""
Twitch Client - Three-layer architecture for the Twitch Helix and PubSub APIs.

Layers:
- core: Raw types, decoders and async HTTP client
- sdk: High-level TwitchClient with nice ergonomics
- cli: Opinionated command-line interface
"""

from twitch_client.sdk import TwitchClient

__version__ = "0.1.0"
__all__ = ["TwitchClient"]
