# src/main.py — v1
"""CLI entry point: list, buckets, invalidate commands.

Usage:
    kitebuilds list --since <datetime> [--pipeline NAME]... [--branch NAME]... [--json]
    kitebuilds buckets --since <datetime>
    kitebuilds invalidate --day YYYY-MM-DD
    kitebuilds purge
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime, timezone

from kitebuilds.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _parse_since(value: str) -> datetime:
    """ISO 8601 datetime or plain date; naive values are local time."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO 8601 datetime: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}") from e


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="kitebuilds",
        description=f"kitebuilds v{__version__}: cached Buildkite build listings",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--org", default=None,
        help="Buildkite organization slug (default: BUILDKITE_ORG)",
    )
    parser.add_argument(
        "--cache-backend", choices=["memory", "json", "sqlite", "redis"], default=None,
        help="Cache backend (default: CACHE_BACKEND)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- list ---
    p_list = subparsers.add_parser(
        "list", help="List passed builds created since an instant",
    )
    p_list.add_argument(
        "--since", type=_parse_since, required=True,
        help="Exclusive lower bound, ISO 8601 (e.g. 2024-01-01T10:00:00Z)",
    )
    p_list.add_argument(
        "--pipeline", action="append", default=[],
        help="Only builds of this pipeline (repeatable)",
    )
    p_list.add_argument(
        "--branch", action="append", default=[],
        help="Only builds of this branch (repeatable)",
    )
    p_list.add_argument(
        "--json", action="store_true", dest="as_json",
        help="Print builds as a JSON array",
    )
    p_list.set_defaults(func=_cmd_list)

    # --- buckets ---
    p_buckets = subparsers.add_parser(
        "buckets", help="Show the daily buckets, cache keys and TTLs a listing uses",
    )
    p_buckets.add_argument("--since", type=_parse_since, required=True)
    p_buckets.set_defaults(func=_cmd_buckets)

    # --- invalidate ---
    p_invalidate = subparsers.add_parser(
        "invalidate", help="Drop the cached bucket of one local calendar day",
    )
    p_invalidate.add_argument("--day", type=_parse_day, required=True)
    p_invalidate.set_defaults(func=_cmd_invalidate)

    # --- purge ---
    p_purge = subparsers.add_parser(
        "purge", help="Remove expired bucket entries from the cache backend",
    )
    p_purge.set_defaults(func=_cmd_purge)

    return parser


def _load_settings(args: argparse.Namespace):
    from kitebuilds.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.org:
        overrides["buildkite_org"] = args.org
    if args.cache_backend:
        overrides["cache_backend"] = args.cache_backend
    return load_settings(**overrides)


async def _cmd_list(args: argparse.Namespace, settings) -> int:
    """List builds through the bucket cache."""
    from kitebuilds.api.facade import list_builds
    from kitebuilds.api.lister import BuildListingError
    from kitebuilds.core.predicates import build_filter

    predicate = build_filter(pipelines=args.pipeline, branches=args.branch)
    try:
        builds = await list_builds(args.since, predicate, settings=settings)
    except BuildListingError as e:
        logger.error("%s", e)
        _print_builds(e.partial, args.as_json)
        return 1

    _print_builds(builds, args.as_json)
    return 0


async def _cmd_buckets(args: argparse.Namespace, settings) -> int:
    """Print buckets with the TTL each would be cached with right now."""
    from kitebuilds.core.intervals import generate_daily_intervals
    from kitebuilds.core.ttl import TtlPolicy

    policy = TtlPolicy.from_settings(settings)
    now = datetime.now(timezone.utc)
    for interval in generate_daily_intervals(args.since, now):
        ttl = policy.for_interval(interval, now=now)
        state = "settled" if policy.is_settled(interval, now=now) else "recent"
        print(
            f"{interval.start.astimezone().isoformat()}  {interval.cache_key:>23}  "
            f"{state:8s} ttl={ttl}"
        )
    return 0


async def _cmd_invalidate(args: argparse.Namespace, settings) -> int:
    """Delete the cache entry of one day bucket."""
    from kitebuilds.cache.cache_factory import create_cache_store
    from kitebuilds.core.intervals import generate_daily_intervals

    day_start = datetime(args.day.year, args.day.month, args.day.day).astimezone()
    interval = generate_daily_intervals(day_start, day_start)[0]
    store = create_cache_store(settings)
    try:
        await store.delete(interval.cache_key)
    finally:
        store.close()
    print(f"Invalidated bucket {interval.cache_key} ({args.day.isoformat()})")
    return 0


async def _cmd_purge(args: argparse.Namespace, settings) -> int:
    """Drop expired entries from the configured store."""
    from kitebuilds.cache.cache_factory import create_cache_store

    store = create_cache_store(settings)
    try:
        removed = store.purge_expired()
    finally:
        store.close()
    print(f"Purged {removed} expired bucket(s) from the {settings.cache_backend} cache")
    return 0


def _print_builds(builds: list, as_json: bool) -> None:
    if as_json:
        print(json.dumps([b.model_dump(mode="json") for b in builds], indent=2))
        return
    for b in builds:
        print(
            f"{b.created_at.isoformat()}  {b.pipeline_name:30s} {b.branch:30s} "
            f"{(b.finished_at - b.started_at).total_seconds():8.0f}s  {b.id}"
        )
    print(f"\n{len(builds)} build(s)")


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from kitebuilds.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
