"""
Logging setup shared by the client, the API and the CLI.

Modules call ``get_logger(__name__)``; the first call configures the root
logger at ``KARAOKE_LOG_LEVEL`` (INFO by default). ``karaoke --log-level``
reconfigures it with ``force=True``.
"""

import logging
import os

DEFAULT_LEVEL = os.environ.get("KARAOKE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = DEFAULT_LEVEL, force: bool = False) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        force=force,
    )


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger()
    if not root.handlers:
        setup_logging()
    return logging.getLogger(name)
