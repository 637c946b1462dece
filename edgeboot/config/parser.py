#!/usr/bin/env python3
"""
Command-line argument parser for provisioning runs.
"""

import argparse

from edgeboot.config.defaults import (
    ARC_POLL_ATTEMPTS,
    ARC_POLL_INTERVAL,
    CONFIG_POLL_ATTEMPTS,
    CONFIG_POLL_INTERVAL,
    DEFAULT_OUTPUT_DIR,
)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for ``edgeboot``.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="edgeboot",
        description=(
            "Validate an edge appliance parameter sheet, commission the "
            "appliance and provision its cloud resources."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "parameter_sheet",
        type=str,
        help="Parameter sheet (.xlsx or .csv) with Parameter and Value columns",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default=DEFAULT_OUTPUT_DIR,
        help=(
            "Directory for generated parameter files "
            f"(default: {DEFAULT_OUTPUT_DIR})"
        ),
    )
    parser.add_argument(
        "--skip-login",
        action="store_true",
        default=False,
        help="Reuse the current az CLI login instead of signing in",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the sheet and write parameter files, then stop",
    )
    parser.add_argument(
        "--allow-failed",
        action="append",
        default=[],
        metavar="DECLARATION",
        help=(
            "Device configuration element allowed to report Failed. "
            "May be repeated"
        ),
    )
    parser.add_argument(
        "--no-verify-tls",
        action="store_true",
        default=False,
        help="Do not verify the appliance's TLS certificate",
    )

    # Poll budgets
    parser.add_argument(
        "--config-poll-interval",
        type=float,
        default=CONFIG_POLL_INTERVAL,
        help=(
            "Seconds between device configuration status polls "
            f"(default: {CONFIG_POLL_INTERVAL})"
        ),
    )
    parser.add_argument(
        "--config-poll-attempts",
        type=int,
        default=CONFIG_POLL_ATTEMPTS,
        help=(
            "Device configuration status polls before giving up "
            f"(default: {CONFIG_POLL_ATTEMPTS})"
        ),
    )
    parser.add_argument(
        "--arc-poll-interval",
        type=float,
        default=ARC_POLL_INTERVAL,
        help=(
            "Seconds between Arc attachment polls "
            f"(default: {ARC_POLL_INTERVAL})"
        ),
    )
    parser.add_argument(
        "--arc-poll-attempts",
        type=int,
        default=ARC_POLL_ATTEMPTS,
        help=(
            "Arc attachment polls before giving up "
            f"(default: {ARC_POLL_ATTEMPTS})"
        ),
    )

    # Logging
    parser.add_argument(
        "-v",
        "--logs",
        action="store_true",
        help="If flagged, log remote calls and command output as they run",
        default=False,
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return create_parser().parse_args(argv)
