"""Root logging setup for applications embedding cephdfs."""

import logging
import os


def setup_logging() -> None:
    """Configure root logging at the level named by ``CEPHDFS_LOG_LEVEL`` (default INFO)."""
    level_name = os.getenv("CEPHDFS_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    logging.basicConfig(level=level, format=fmt)
