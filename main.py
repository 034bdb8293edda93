"""CLI entry point for the candidate discovery pipeline."""

import argparse
import asyncio
import json
import logging
import sys

from leadfinder.core.config import Settings
from leadfinder.core.db import init_db, prune_rate_limit_windows
from leadfinder.core.errors import ConfigurationError
from leadfinder.core.schemas import (
    PipelineResponse,
    SearchRequest,
    anonymous_caller_key,
    user_caller_key,
)
from leadfinder.llm import provider_from_config
from leadfinder.pipeline.orchestrator import DiscoveryPipeline
from leadfinder.pipeline.rate_limiter import RateLimiter
from leadfinder.search.client import ExaSearchClient


def _add_caller_args(parser: argparse.ArgumentParser) -> None:
    caller = parser.add_mutually_exclusive_group()
    caller.add_argument("--ip", default="unknown", help="Anonymous caller IP (preview tier)")
    caller.add_argument("--user-id", help="Authenticated caller id (full tier)")


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML file (default: built-in defaults)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Lead finder - discover and score healthcare candidates",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- search subcommand ---
    search_parser = subparsers.add_parser("search", help="Run a candidate search")
    search_parser.add_argument("query", help="Free-text recruiting requirement")
    _add_caller_args(search_parser)
    _add_common_args(search_parser)

    # --- quota subcommand ---
    quota_parser = subparsers.add_parser(
        "quota", help="Show remaining searches for a caller in the current window",
    )
    _add_caller_args(quota_parser)
    _add_common_args(quota_parser)

    # --- prune-windows subcommand ---
    prune_parser = subparsers.add_parser(
        "prune-windows", help="Delete rate-limit windows older than N days",
    )
    prune_parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Keep windows started within this many days (default: 30)",
    )
    _add_common_args(prune_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def load_settings(path: str | None) -> Settings:
    if path is None:
        return Settings()
    return Settings.from_yaml(path)


def resolve_caller(args: argparse.Namespace) -> tuple[str, str]:
    """Return (caller_key, tier) for the CLI caller arguments."""
    if args.user_id:
        return user_caller_key(args.user_id), "full"
    return anonymous_caller_key(args.ip), "preview"


async def run_search(
    settings: Settings, query: str, caller_key: str, tier: str,
) -> PipelineResponse:
    """Run one search with real upstream clients."""
    try:
        provider = provider_from_config(settings.llm)
        search_client = ExaSearchClient(settings.search)
    except ValueError as e:
        error = ConfigurationError(str(e))
        return PipelineResponse(
            success=False,
            status_code=error.status_code,
            error=error.message,
            error_code=error.code,
        )
    except ConfigurationError as e:
        return PipelineResponse(
            success=False, status_code=e.status_code, error=e.message, error_code=e.code,
        )

    conn = init_db(settings.database.path)
    try:
        async with search_client:
            pipeline = DiscoveryPipeline(
                settings,
                RateLimiter(conn, settings.rate_limits),
                search_client,
                provider,
            )
            request = SearchRequest(query=query, caller_key=caller_key, tier=tier)
            return await pipeline.handle(request)
    finally:
        conn.close()


def cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    caller_key, tier = resolve_caller(args)
    response = asyncio.run(run_search(settings, args.query, caller_key, tier))
    print(json.dumps(response.to_dict(), indent=2))
    return 0 if response.success else 1


def cmd_quota(args: argparse.Namespace, settings: Settings) -> int:
    caller_key, tier = resolve_caller(args)
    conn = init_db(settings.database.path)
    try:
        remaining = RateLimiter(conn, settings.rate_limits).remaining(caller_key, tier)
    finally:
        conn.close()
    limit = settings.rate_limits[tier].requests_per_window
    print(f"{caller_key} ({tier}): {remaining}/{limit} searches remaining in this window")
    return 0


def cmd_prune_windows(args: argparse.Namespace, settings: Settings) -> int:
    conn = init_db(settings.database.path)
    try:
        removed = prune_rate_limit_windows(conn, args.days)
    finally:
        conn.close()
    print(f"Removed {removed} rate-limit windows older than {args.days} days")
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    commands = {
        "search": cmd_search,
        "quota": cmd_quota,
        "prune-windows": cmd_prune_windows,
    }
    sys.exit(commands[args.command](args, settings))


if __name__ == "__main__":
    main()
