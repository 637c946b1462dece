"""Utility module for common helper functions.

Import directly from submodules when needed:
  - from edgeboot.utils.logging_setup import ...
  - from edgeboot.utils.polling import ...
  - from edgeboot.utils.paths import ...
"""

__all__ = [
    "logging_setup",
    "paths",
    "polling",
]
