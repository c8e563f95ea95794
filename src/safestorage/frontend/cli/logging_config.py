"""Logging setup for the command line tool."""

import logging
import sys


def configure_logging(verbose: bool = False) -> None:
    # Progress goes to stderr so stdout only carries the keys.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    # keyring reports every backend it probes
    logging.getLogger("keyring").setLevel(logging.DEBUG if verbose else logging.WARNING)
