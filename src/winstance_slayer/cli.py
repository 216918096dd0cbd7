"""CLI entry point for winstance-slayer."""

import argparse
import logging
import sys

from winstance_slayer import __version__
from winstance_slayer.config import MissingPatternError, get_settings
from winstance_slayer.workflow import run


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Reboot EC2 instances stuck in an impaired status check"
    )
    parser.add_argument("--pattern", help="Name tag glob (overrides WORKERTYPE_PATTERN)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Query only; report instances that would be rebooted",
    )
    parser.add_argument("--log-file", help="Termination log path (overrides TERMINATION_LOG_PATH)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = get_settings()
    if args.pattern:
        settings.workertype_pattern = args.pattern
    if args.dry_run:
        settings.dry_run = "1"
    if args.log_file:
        settings.termination_log_path = args.log_file

    try:
        run(settings=settings)
    except MissingPatternError as e:
        print(e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
