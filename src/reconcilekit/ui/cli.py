from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, SIGTERM, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from reconcilekit.app import build_splitter_controller
from reconcilekit.config import ConfigurationError, configure_logging, get_controller_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from reconcilekit.domain.controller import Controller

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run reconciliation controllers")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Split deployments across clusters")
    run.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of concurrent workers (defaults to config)",
    )
    run.add_argument(
        "--cluster",
        dest="clusters",
        action="append",
        default=None,
        help=(
            "Split deployments onto this fixed cluster; repeat for several clusters. "
            "Without it the store's cluster collection is watched"
        ),
    )
    run.add_argument(
        "--store-url",
        type=str,
        help="Base URL of the object store (defaults to RECONCILEKIT_STORE_URL)",
    )
    return parser.parse_args(list(argv))


def _install_stop_handlers(controller: Controller) -> None:
    def handler(signal_received: int, _frame: FrameType | None) -> None:
        log.info("Received signal %s, shutting down", signal_received)
        controller.stop()

    signal(SIGINT, handler)
    signal(SIGTERM, handler)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        if parsed_args.workers is not None and parsed_args.workers < 1:
            raise ValueError("--workers must be at least 1")  # noqa: TRY301
        config = get_controller_config()
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        controller = build_splitter_controller(
            clusters=parsed_args.clusters,
            store_url=parsed_args.store_url,
            config=config,
        )
        _install_stop_handlers(controller)
        controller.start(parsed_args.workers)
    except Exception:
        log.exception("Fatal controller error")
        sys.exit(1)


if __name__ == "__main__":
    main()
