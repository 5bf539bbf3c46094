"""CLI entry point for kindscope.

Fetches one author's events from every relay, then prints a summary, the
kinds found, and the selected events. Progress goes to stderr, results to
stdout.

Examples:
    ```bash
    python -m kindscope npub1... --since 2024-01-01 --until 2024-01-31
    python -m kindscope <hex-pubkey> --kind 1 --relays "wss://nos.lol, wss://relay.damus.io"
    python -m kindscope npub1... --show 0 --json
    python -m kindscope npub1... --config config/kindscope.yaml --lookup-kinds
    ```
"""

import argparse
import asyncio
import datetime
import logging
import sys
import time
from pathlib import Path

from kindscope.core.exceptions import ConfigurationError, InputError
from kindscope.core.logger import Logger, StructuredFormatter
from kindscope.explorer import (
    ALL_KINDS,
    ExplorerConfig,
    FanoutCoordinator,
    KindNameResolver,
    build_request,
    classify,
    drain_closes,
    end_of_day,
)
from kindscope.explorer.display import (
    format_event_count,
    format_progress,
    format_stats,
    kind_options,
    render_events,
)
from kindscope.models import KindNames


DEFAULT_CONFIG = Path("config") / "kindscope.yaml"

logger = Logger("cli")


class ProgressPrinter:
    """Write liveness and event-count updates to stderr while the fetch runs.

    Event-count changes are printed at most once per *interval* seconds;
    every liveness change is printed.
    """

    def __init__(self, *, enabled: bool = True, interval: float = 0.5) -> None:
        self._enabled = enabled
        self._interval = interval
        self._events = 0
        self._progress: tuple[int, int, int] | None = None
        self._last_print = 0.0

    def on_event_count(self, count: int) -> None:
        changed = count != self._events
        self._events = count
        if not changed or self._progress is None:
            return
        if time.monotonic() - self._last_print >= self._interval:
            self._print()

    def on_progress(self, connected: int, failed: int, total: int) -> None:
        self._progress = (connected, failed, total)
        self._print()

    def _print(self) -> None:
        if not self._enabled or self._progress is None:
            return
        self._last_print = time.monotonic()
        print(
            f"{format_progress(*self._progress)} | {format_event_count(self._events)}",
            file=sys.stderr,
        )


def _date(value: str) -> datetime.date:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD") from None


def _selection(value: str) -> int | str:
    text = value.strip().lower()
    if text == ALL_KINDS:
        return ALL_KINDS
    if text.isdigit():
        return int(text)
    raise argparse.ArgumentTypeError(f"invalid selection {value!r}, expected 'all' or a kind number")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="kindscope",
        description="Fetch a Nostr author's events from many relays and group them by kind",
    )

    parser.add_argument("pubkey", help="Author public key (hex or npub)")

    parser.add_argument("--since", type=_date, help="Start date, inclusive (YYYY-MM-DD)")

    parser.add_argument("--until", type=_date, help="End date, inclusive (YYYY-MM-DD)")

    parser.add_argument("--kind", help="Fetch only this kind (default: all kinds)")

    parser.add_argument(
        "--relays",
        help="Comma-separated relay URLs (default: relays from the config file)",
    )

    parser.add_argument(
        "--show",
        type=_selection,
        default=ALL_KINDS,
        help="Kind to display, or 'all' (default: all)",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print selected events as one JSON object per line",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help=f"Config path (default: {DEFAULT_CONFIG} if present)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-relay deadline in seconds (default: from config, 10)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: from config, WARNING)",
    )

    parser.add_argument(
        "--lookup-kinds",
        action="store_true",
        help="Look up unknown kind names in the NIPs repository",
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print progress to stderr",
    )

    return parser.parse_args(argv)


def setup_logging(level: str, *, json_output: bool = False) -> None:
    """Configure the root logger with structured formatting.

    Installs a ``StructuredFormatter`` on a stderr handler so that all log
    output -- from both ``Logger`` and plain ``logging.getLogger()`` calls in
    models/utils -- shares one layout.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter(json_output=json_output))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def load_config(path: Path | None) -> ExplorerConfig:
    """Load the explorer config; a missing default file yields the defaults.

    Raises:
        ConfigurationError: If an explicitly given file is missing or any
            file is invalid.
    """
    if path is None:
        if not DEFAULT_CONFIG.exists():
            return ExplorerConfig()
        path = DEFAULT_CONFIG
    return ExplorerConfig.from_yaml(str(path))


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, fetch, classify, and print."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        if args.timeout is not None:
            config = ExplorerConfig.from_dict({**config.model_dump(), "timeout": args.timeout})
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or config.logging.level, json_output=config.logging.json_output)

    relays = args.relays if args.relays and args.relays.strip() else config.relays
    try:
        request = build_request(
            args.pubkey,
            relays,
            since=args.since,
            until=end_of_day(args.until) if args.until else None,
            kind=args.kind,
        )
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    lookup = config.lookup.model_copy(update={"enabled": True}) if args.lookup_kinds else config.lookup
    resolver = KindNameResolver(KindNames(overrides=config.kind_names), lookup)

    progress = ProgressPrinter(enabled=not args.quiet)
    coordinator = FanoutCoordinator(
        timeout=config.timeout,
        on_progress=progress.on_progress,
        on_event_count=progress.on_event_count,
    )

    events = await coordinator.fetch(request)
    result = classify(events)
    if lookup.enabled:
        await resolver.resolve_many(result.groups)

    print(format_stats(result.stats))
    options = kind_options(result.groups, resolver)
    if options:
        print()
        print("\n".join(options))
    print()
    print(render_events(result.groups, args.show, resolver, raw_json=args.json))

    await drain_closes()
    logger.info("cli_completed", events=result.stats.total, kinds=result.stats.unique_kinds)
    return 0


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("interrupted")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    cli()
