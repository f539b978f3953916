"""Decommission retained MQTT topics of a host or a hardware component.

Usage:
    python decommission.py --host-name PC1 [--force] [--what-if]
    python decommission.py --component-id samsung_hd103si_s1vsjd1zb07989 --force

Exactly one target is required. The planned deletions are always printed
first. ``--what-if`` stops there. Without ``--force`` the user is asked to
confirm (non-interactive runs without ``--force`` are cancelled).

Exit Codes:
    0: Success, nothing to do, dry run or cancelled
    1: Invalid invocation, configuration or connection error, or at least
       one topic could not be deleted
"""

# Standard library imports
import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

# Local imports
from hostagent.collectors.system import SystemMetricsProvider
from hostagent.core.config import (
    BASE_DIR,
    AgentConfig,
    ConfigError,
    is_interactive_environment,
    load_config,
    prompt_yes_no,
)
from hostagent.core.executor import describe_plan, execute
from hostagent.core.messaging import MessageBroker, connect_client, disconnect_client
from hostagent.core.planner import (
    is_local_host,
    plan_component_decommission,
    plan_host_decommission,
)
from hostagent.core.snapshot import MetricsProvider, take_snapshot
from hostagent.utils.identity import sanitize
from hostagent.utils.logs import setup_logging

logger = logging.getLogger(__name__)

LOG_PATH = BASE_DIR / "data" / "decommission.log"


class UsageError(Exception):
    """Raised for an invalid command line."""


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="decommission",
        description="Delete retained MQTT topics of a removed host or component.",
        allow_abbrev=False,
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--host-name", "-HostName", dest="host_name", help="host whose topics are deleted"
    )
    target.add_argument(
        "--component-id",
        "-ComponentId",
        dest="component_id",
        help="component (<model>_<serial>) whose discovery topics are deleted",
    )
    parser.add_argument(
        "--force", "-Force", action="store_true", help="skip the confirmation prompt"
    )
    parser.add_argument(
        "--what-if",
        "--dry-run",
        "-WhatIf",
        dest="dry_run",
        action="store_true",
        help="only show the planned deletions",
    )
    parser.add_argument("--config", type=Path, default=None, help="path to config.ini")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse the command line, raising UsageError on invalid input."""
    args = build_parser().parse_args(argv)
    target = args.host_name if args.host_name is not None else args.component_id
    if not target or not target.strip():
        raise UsageError("the target name cannot be empty")
    return args


def _confirm(force: bool, count: int) -> bool:
    if force:
        return True
    if not is_interactive_environment():
        print("Not running interactively and --force not given; cancelled.")
        return False
    return prompt_yes_no(f"Delete {count} retained topics?")


def run_decommission(
    args: argparse.Namespace,
    config: AgentConfig,
    provider: Optional[MetricsProvider] = None,
    connect: Callable[[AgentConfig], object] = connect_client,
) -> int:
    """Resolve the target, plan, then report or execute.

    Args:
        args: Parsed command line.
        config: Run configuration.
        provider: Local hardware source, used when the host target is this machine.
        connect: Factory returning a connected paho client.

    Returns:
        Process exit status.
    """
    client = None
    try:
        if args.component_id is not None:
            target = sanitize(args.component_id)
            plan = plan_component_decommission(config, target)
            kind = "component"
        else:
            target = sanitize(args.host_name)
            kind = "host"
            snapshot = None
            if provider is not None and is_local_host(args.host_name, config):
                snapshot = take_snapshot(provider, full=True)

            transport = None
            if args.dry_run:
                print("What if: the live broker query is skipped; leftover topics are not listed.")
            else:
                try:
                    client = connect(config)
                except ConnectionError as e:
                    logger.error(str(e))
                    return 1
                transport = MessageBroker(client)
            plan = plan_host_decommission(config, args.host_name, snapshot, transport)

        print(f"Planned deletions for {kind} '{target}' ({len(plan)} topics):")
        for line in describe_plan(plan):
            print(f"  {line}")

        if not plan:
            print("Nothing to delete.")
            return 0

        if args.dry_run:
            print("What if: no topics were deleted.")
            return 0

        if not _confirm(args.force, len(plan)):
            print("Cancelled.")
            return 0

        if client is None:
            try:
                client = connect(config)
            except ConnectionError as e:
                logger.error(str(e))
                return 1

        summary = execute(
            plan,
            MessageBroker(client),
            qos=config.qos,
            progress_every=config.progress_every,
        )
        print(
            f"Deleted {summary.succeeded}/{summary.attempted} topics "
            f"({summary.failed} failed)."
        )
        for topic in summary.failed_topics:
            print(f"  failed: {topic}")
        return summary.exit_code
    finally:
        if client is not None:
            disconnect_client(client)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = parse_args(argv)
    except UsageError as e:
        build_parser().print_usage(sys.stderr)
        print(f"decommission: error: {e}", file=sys.stderr)
        return 1

    setup_logging(LOG_PATH, debug=args.debug)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    return run_decommission(args, config, SystemMetricsProvider(cpu_interval=0.1))
