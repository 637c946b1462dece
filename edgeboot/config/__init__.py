"""Configuration dataclasses for provisioning runs."""

from edgeboot.config.parser import create_parser, parse_args
from edgeboot.config.run_config import RunConfig

__all__ = [
    "RunConfig",
    "create_parser",
    "parse_args",
]
