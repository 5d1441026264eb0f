#!/usr/bin/env python3
"""
array-health - disk health and data loss estimation for parity arrays.

Commands:
  array-health up         Spin up the array disks
  array-health down       Spin down the array disks
  array-health devices    List array members and their devices
  array-health smart      SMART report and data loss probabilities
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Callable, Dict, Optional

from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import ArrayHealthError
from .models import Operation
from .platform import DeviceQuery, SystemDeviceQuery
from .report import render_smart_report, render_status, render_topology, summarize, summary_to_dict
from .topology import TopologyResult, resolve


def handle_spin(args: argparse.Namespace, result: TopologyResult) -> int:
    if result.failures:
        print(f"Failed on {len(result.failures)} device(s): {', '.join(result.failures)}", file=sys.stderr)
        return 1
    return 0


def handle_list(args: argparse.Namespace, result: TopologyResult) -> int:
    sys.stdout.write(render_topology(result.topology))
    return 0


def handle_smart(args: argparse.Namespace, result: TopologyResult) -> int:
    summary = summarize(result.topology, result.member_count)
    if getattr(args, "json", False):
        print(json.dumps(summary_to_dict(summary), indent=2))
    else:
        sys.stdout.write(render_smart_report(summary))
    return 0


HANDLERS: Dict[Operation, Callable[[argparse.Namespace, TopologyResult], int]] = {
    Operation.SPIN_UP: handle_spin,
    Operation.SPIN_DOWN: handle_spin,
    Operation.LIST: handle_list,
    Operation.SMART: handle_smart,
}

COMMANDS = {
    "up": Operation.SPIN_UP,
    "down": Operation.SPIN_DOWN,
    "devices": Operation.LIST,
    "smart": Operation.SMART,
}


def run(args: argparse.Namespace, query: Optional[DeviceQuery] = None) -> int:
    """Resolve the array devices and dispatch to the operation handler."""
    operation = COMMANDS[args.command]
    try:
        config = load_config(args.conf)
    except ArrayHealthError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if operation in (Operation.SPIN_UP, Operation.SPIN_DOWN):
        sys.stdout.write(render_status(operation))

    result = resolve(config, query or SystemDeviceQuery(), operation)
    if result.diagnostic:
        print(result.diagnostic, file=sys.stderr)
        return 0

    return HANDLERS[operation](args, result)


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="array-health",
        description="Disk health and data loss estimation for parity arrays",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  array-health smart                    SMART report of the array
  array-health -c my.conf devices       List devices using another config
  array-health smart --json             SMART report as JSON
        """,
    )
    parser.add_argument(
        "--conf", "-c", default=DEFAULT_CONFIG_PATH, help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("up", help="Spin up the array disks")
    subparsers.add_parser("down", help="Spin down the array disks")
    subparsers.add_parser("devices", help="List array members and their devices")

    smart_parser = subparsers.add_parser("smart", help="SMART report and data loss probabilities")
    smart_parser.add_argument("--json", action="store_true", help="Output JSON")

    return parser


def main() -> int:
    """Main entry point."""
    parser = app()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
