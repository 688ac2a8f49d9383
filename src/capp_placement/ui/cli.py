from __future__ import annotations

import argparse
import logging
import os
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from capp_placement.app import reconcile_workload, run_placement_controller
from capp_placement.config import (
    ConfigurationError,
    configure_logging,
    get_controller_config,
    get_kubernetes_config,
)
from capp_placement.domain.model import WorkloadKey
from capp_placement.domain.placement import SelectionStrategy

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

# CLI flag -> environment variable it overrides
_FLAG_ENV_VARS = {
    "placements": "CAPP_PLACEMENTS",
    "placements_namespace": "CAPP_PLACEMENTS_NAMESPACE",
    "namespace": "CAPP_WATCH_NAMESPACE",
    "workers": "CAPP_WORKERS",
    "requeue_seconds": "CAPP_REQUEUE_SECONDS",
    "selection": "CAPP_SELECTION_STRATEGY",
    "kubeconfig": "KUBECONFIG",
    "context": "KUBE_CONTEXT",
}


def _controller_options() -> argparse.ArgumentParser:
    options = argparse.ArgumentParser(add_help=False)
    options.add_argument(
        "--placements",
        type=str,
        help="Comma-separated placement names; the first is the default (env: CAPP_PLACEMENTS)",
    )
    options.add_argument(
        "--placements-namespace",
        type=str,
        help="Namespace holding Placements and PlacementDecisions",
    )
    options.add_argument(
        "--selection",
        choices=[strategy.value for strategy in SelectionStrategy],
        help="How to choose among several elected clusters (default: first)",
    )
    options.add_argument(
        "--requeue-seconds",
        type=float,
        help="Delay before retrying a Capp whose placement has no decision yet",
    )
    options.add_argument(
        "--kubeconfig",
        type=str,
        help="Kubeconfig file to use instead of the in-cluster service account",
    )
    options.add_argument(
        "--context",
        type=str,
        help="Kubeconfig context to use (default: current context)",
    )
    return options


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Place Capps on managed clusters")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging verbosity (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    options = _controller_options()

    run = subparsers.add_parser("run", parents=[options], help="Run the placement controller")
    run.add_argument(
        "--namespace",
        type=str,
        help="Only watch Capps in this namespace (default: all namespaces)",
    )
    run.add_argument(
        "--workers",
        type=int,
        help="Number of concurrent reconciliation workers",
    )

    reconcile = subparsers.add_parser(
        "reconcile",
        parents=[options],
        help="Run one reconciliation pass for a single Capp",
    )
    reconcile.add_argument("key", type=str, help="Capp to reconcile as NAMESPACE/NAME")

    return parser.parse_args(list(argv))


def _environment(args: argparse.Namespace) -> dict[str, str]:
    environ = dict(os.environ)
    for attribute, variable in _FLAG_ENV_VARS.items():
        value = getattr(args, attribute, None)
        if value is not None:
            environ[variable] = str(value)
    return environ


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=parsed_args.log_level)

    try:
        environ = _environment(parsed_args)
        config = get_controller_config(environ=environ)
        kubernetes = get_kubernetes_config(environ=environ)
        key = WorkloadKey.parse(parsed_args.key) if parsed_args.command == "reconcile" else None
    except (ConfigurationError, ValueError):
        log.exception("Invalid configuration")
        sys.exit(2)

    try:
        if key is None:
            run_placement_controller(config=config, kubernetes=kubernetes)
        else:
            reconcile_workload(key, config=config, kubernetes=kubernetes)
    except KeyboardInterrupt:
        log.info("Interrupted")
    except ConfigurationError:
        log.exception("Unable to load Kubernetes credentials")
        sys.exit(2)
    except Exception:
        log.exception("Placement controller failed")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
