"""
Logging setup for the command-line entry points.
"""

import logging

LOG_FORMAT = "%(levelname)s %(name)s - %(message)s"


def configure_logging(level: str = "WARNING", verbose: bool = False) -> None:
    """Configure the root logger once for a CLI run.

    Args:
        level: Level name used when ``verbose`` is off
        verbose: Force DEBUG output
    """
    resolved = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, force=True)
    # urllib3 is chatty at DEBUG while downloading release assets
    logging.getLogger("urllib3").setLevel(max(resolved, logging.INFO))
