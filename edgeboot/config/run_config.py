"""Run configuration dataclass."""

import argparse
from dataclasses import dataclass, field
from typing import Any

from edgeboot.config.defaults import (
    STATUS_FETCH_ATTEMPTS,
    STATUS_FETCH_INTERVAL,
)
from edgeboot.config.parser import parse_args
from edgeboot.utils.polling import RetryPolicy


@dataclass
class RunConfig:
    parameter_sheet: str
    output_dir: str
    skip_login: bool
    validate_only: bool
    verify_tls: bool
    config_poll: RetryPolicy
    arc_poll: RetryPolicy
    status_fetch: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(
            attempts=STATUS_FETCH_ATTEMPTS,
            interval=STATUS_FETCH_INTERVAL,
        )
    )
    allowed_failures: list[str] = field(default_factory=list)
    show_logs: bool = False

    @staticmethod
    def from_args(args: argparse.Namespace) -> "RunConfig":
        try:
            config_poll = RetryPolicy(
                attempts=args.config_poll_attempts,
                interval=args.config_poll_interval,
            )
            arc_poll = RetryPolicy(
                attempts=args.arc_poll_attempts,
                interval=args.arc_poll_interval,
            )
        except ValueError as e:
            raise ValueError(f"Invalid poll budget: {e}") from e

        return RunConfig(
            parameter_sheet=args.parameter_sheet,
            output_dir=args.output_dir,
            skip_login=args.skip_login,
            validate_only=args.validate_only,
            verify_tls=not args.no_verify_tls,
            config_poll=config_poll,
            arc_poll=arc_poll,
            allowed_failures=list(args.allow_failed),
            show_logs=args.logs,
        )

    @staticmethod
    def parse(argv: list[str] | None = None) -> "RunConfig":
        return RunConfig.from_args(parse_args(argv))

    def to_dict(self) -> dict[str, Any]:
        return {
            "parameterSheet": self.parameter_sheet,
            "outputDir": self.output_dir,
            "skipLogin": self.skip_login,
            "validateOnly": self.validate_only,
            "verifyTls": self.verify_tls,
            "configPoll": self.config_poll.to_dict(),
            "statusFetch": self.status_fetch.to_dict(),
            "arcPoll": self.arc_poll.to_dict(),
            "allowedFailures": self.allowed_failures,
            "showLogs": self.show_logs,
        }
