"""
calltest CLI

Runs one setData / getData round trip against the contract named by
DEMO_CONTRACT and prints the write latency and the value read back.
No options and no subcommands; everything comes from the environment.
"""

from __future__ import annotations

import logging
import os
import sys

from .theurgy.drive import drive

ENV_LOG_LEVEL = "CALLTEST_LOG_LEVEL"


def configure_logging() -> None:
    """Send log records to stderr so stdout stays the report."""
    level_name = os.environ.get(ENV_LOG_LEVEL, "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """calltest entry point."""
    configure_logging()
    drive()


if __name__ == "__main__":
    main()
