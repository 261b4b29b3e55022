"""CLI entrypoint for search-ads-telemetry."""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence

from .config import (
    DEFAULT_OUTPUT,
    DEFAULT_REQUEST_TIMEOUT,
    ENDPOINT_ENV_VAR,
    ReplayConfig,
)
from .errors import ConfigError, MessageContractError
from .logging_utils import configure_logging, get_logger
from .matching import resolve_provider
from .replay import run_replay


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Search ads telemetry - attribute search pages and ad clicks to providers."
    )
    mode_group = parser.add_mutually_exclusive_group(required=False)
    mode_group.add_argument(
        "--input", help="JSON-lines file of recorded page and click observations."
    )
    mode_group.add_argument(
        "--resolve", metavar="URL", help="Print the provider matching URL and exit."
    )
    parser.add_argument("--output", default=DEFAULT_OUTPUT, help="Output CSV path.")
    parser.add_argument(
        "--endpoint", help=f"Telemetry upload URL (or set {ENDPOINT_ENV_VAR} env var)."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help="Upload request timeout in seconds.",
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable tqdm progress bars.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse and pre-validate CLI input."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not (args.input or args.resolve):
        parser.error("Provide --input or --resolve.")
    return args


def namespace_to_config(args: argparse.Namespace) -> ReplayConfig:
    """Convert CLI args to validated ReplayConfig."""
    return ReplayConfig(
        input_path=args.input,
        output=args.output,
        endpoint=args.endpoint or os.getenv(ENDPOINT_ENV_VAR),
        request_timeout=args.timeout,
        show_progress=not args.no_progress,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    configure_logging(args.verbose)
    logger = get_logger()

    if args.resolve:
        provider = resolve_provider(args.resolve)
        if provider is None:
            logger.info("No provider matches %s", args.resolve)
            return 3
        print(provider.name)
        return 0

    try:
        config = namespace_to_config(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        output = run_replay(config, logger=logger)
    except MessageContractError as exc:
        logger.error("Invalid observation: %s", exc)
        return 1
    logger.info("Wrote events to %s", output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
