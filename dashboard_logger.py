"""Console logging for the dashboard process."""
import logging
import sys

import dashboard_config as cfg

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stdout,
)

# Parent of every module logger; level comes from dashboard_config.LOG_LEVEL
logger = logging.getLogger("public_dashboard")
logger.setLevel(getattr(logging, str(cfg.LOG_LEVEL).upper(), logging.INFO))


def get_logger(name: str) -> logging.Logger:
    return logger.getChild(name)
