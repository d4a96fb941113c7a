"""Lightweight logging setup for cryptoguard samples and tools."""

import logging
import sys

from .config import get_config


def configure_logging(level: int | str | None = None) -> None:
    # Configure root logger once; keep output simple for terminals.
    if level is None:
        level = get_config().log_level
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
