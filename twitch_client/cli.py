"""
Twitch CLI - Opinionated command-line interface.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing
- TTY detection for human vs machine output
- Pretty formatting for human output
- JSON output for piping/automation
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from twitch_client.core.client import TwitchError, ValidationError
from twitch_client.core.types import HelixGame, Pagination, PubSubRedemptionMessage
from twitch_client.sdk import TwitchClient

# =============================================================================
# Output Helpers
# =============================================================================


HUMAN_LIMIT = 20  # Default page size for human-readable output


def is_tty() -> bool:
    """Check if stdout is a TTY (human) or pipe (machine)."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Print JSON output."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: TwitchError) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


def success_output(data: Any) -> None:
    """Print success output."""
    json_output(data)


def table_output(
    headers: list[str],
    rows: list[list[str]],
    widths: list[int],
) -> None:
    """Print a formatted table for human output."""
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    for row in rows:
        print("  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths)))


def game_to_output(game: HelixGame) -> dict[str, Any]:
    return {
        "id": game.id,
        "name": game.name,
        "box_art_url": game.box_art_url,
        "igdb_id": game.igdb_id,
    }


def games_table(games: list[HelixGame]) -> None:
    table_output(
        ["ID", "Name", "IGDB ID"],
        [[g.id, g.name, g.igdb_id or ""] for g in games],
        [12, 50, 10],
    )


def redemption_to_output(message: PubSubRedemptionMessage) -> dict[str, Any]:
    return {
        "redemption_id": message.redemption_id,
        "channel_id": message.channel_id,
        "reward_id": message.reward_id,
        "reward_channel_id": message.reward_channel_id,
        "reward_title": message.reward_title,
        "reward_cost": message.reward_cost,
        "user_id": message.user_id,
        "user_name": message.user_name,
        "user_input": message.user_input,
        "status": message.status.value,
        "redeemed_at": message.redeemed_at,
    }


# =============================================================================
# CLI Commands
# =============================================================================


async def cmd_games_get(client: TwitchClient, args: argparse.Namespace) -> None:
    """Look up games by ID, name or IGDB ID."""
    games_api = client.helix.games
    try:
        if args.id:
            games = await games_api.get_games_by_ids(args.id)
        elif args.name:
            games = await games_api.get_games_by_names(args.name)
        else:
            games = await games_api.get_games_by_igdb_ids(args.igdb_id)

        if is_tty():
            if not games:
                print("No games found.")
                return
            games_table(games)
        else:
            success_output({"data": [game_to_output(g) for g in games]})
    except TwitchError as e:
        error_output(e)


async def cmd_games_top(client: TwitchClient, args: argparse.Namespace) -> None:
    """List the most viewed games."""
    games_api = client.helix.games
    try:
        if args.all:
            paginator = games_api.get_top_games_paginated(limit=args.limit)
            games = await paginator.get_all()
            if is_tty():
                games_table(games)
            else:
                success_output({"data": [game_to_output(g) for g in games], "total_count": len(games)})
            return

        limit = args.limit if args.limit is not None else (HUMAN_LIMIT if is_tty() else None)
        page = await games_api.get_top_games(Pagination(after=args.after, before=args.before, limit=limit))

        if is_tty():
            if not page.data:
                print("No games found.")
                return
            games_table(page.data)
            if page.has_more:
                print(f"\nMore results: --after {page.cursor}")
        else:
            success_output({"data": [game_to_output(g) for g in page.data], "cursor": page.cursor})
    except TwitchError as e:
        error_output(e)


async def cmd_pubsub_decode(client: TwitchClient, args: argparse.Namespace) -> None:
    """Decode a channel point redemption from a PubSub frame or message."""
    try:
        text = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON: {e}")

        if isinstance(payload, dict) and payload.get("type") == "MESSAGE":
            message = client.pubsub.decode_frame(payload)
        else:
            message = client.pubsub.decode_redemption(payload)

        if is_tty():
            print(f"{message.user_name} redeemed '{message.reward_title}' ({message.reward_cost} points)")
            if message.user_input is not None:
                print(f"Input: {message.user_input}")
            print(f"Status: {message.status.value}")
        else:
            success_output(redemption_to_output(message))
    except OSError as e:
        error_output(ValidationError(f"Cannot read {args.file}: {e}"))
    except TwitchError as e:
        error_output(e)


# =============================================================================
# Main CLI
# =============================================================================


def _help(parser: argparse.ArgumentParser) -> Callable[[TwitchClient, argparse.Namespace], Awaitable[None]]:
    async def show(_client: TwitchClient, _args: argparse.Namespace) -> None:
        parser.print_help()

    return show


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Twitch CLI - Command-line interface for the Twitch Helix and PubSub APIs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output Modes:
  TTY (human):  Pretty tables, limited rows
  Pipe:         Full JSON

Examples:
  twitch games get --name Hearthstone --name "Just Chatting"
  twitch games top --limit 10
  twitch games top --all | jq '.data[].name'
  twitch pubsub decode frame.json
""",
    )
    parser.add_argument("--client-id", help="Client ID (overrides TWITCH_CLIENT_ID)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log requests to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Games ==========
    games = subparsers.add_parser("games", help="Look up games and categories")
    games.set_defaults(func=_help(games))
    games_sub = games.add_subparsers(dest="subcommand")

    g_get = games_sub.add_parser("get", help="Get games by ID, name or IGDB ID")
    g_filter = g_get.add_mutually_exclusive_group(required=True)
    g_filter.add_argument("--id", action="append", help="Game ID (repeatable)")
    g_filter.add_argument("--name", action="append", help="Exact game name (repeatable)")
    g_filter.add_argument("--igdb-id", action="append", help="IGDB ID (repeatable)")
    g_get.set_defaults(func=cmd_games_get)

    g_top = games_sub.add_parser("top", help="List the most viewed games")
    g_top.add_argument("--limit", "-l", type=int, help="Games per page (1-100)")
    g_top.add_argument("--after", help="Cursor to resume after")
    g_top.add_argument("--before", help="Cursor to resume before")
    g_top.add_argument("--all", action="store_true", help="Follow the cursor through every page")
    g_top.set_defaults(func=cmd_games_top)

    # ========== PubSub ==========
    pubsub = subparsers.add_parser("pubsub", help="Decode PubSub messages")
    pubsub.set_defaults(func=_help(pubsub))
    pubsub_sub = pubsub.add_subparsers(dest="subcommand")

    p_decode = pubsub_sub.add_parser("decode", help="Decode a channel point redemption")
    p_decode.add_argument("file", help="JSON file with a MESSAGE frame or redemption message (or - for stdin)")
    p_decode.set_defaults(func=cmd_pubsub_decode)

    return parser


async def run(args: argparse.Namespace) -> None:
    """Run the selected command with a client that is closed afterwards."""
    async with TwitchClient(client_id=args.client_id) as client:
        await args.func(client, args)


def main() -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

    asyncio.run(run(args))


if __name__ == "__main__":
    main()
