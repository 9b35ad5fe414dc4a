"""Console logging setup shared by the API and the scripts."""

import sys

from loguru import logger


def configure_logging(level: str = "INFO"):
	"""Replace loguru's default sink with a stderr sink at the given level."""
	logger.remove()
	logger.add(sys.stderr, level=level.upper())
	logger.debug(f"[Log] Console logging at level {level.upper()}")
