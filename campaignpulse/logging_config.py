"""
CampaignPulse Logging Setup

All modules log through named loggers under the "campaignpulse" namespace
(e.g. "campaignpulse.engines.forecast"). configure_logging() attaches one
stream handler to that namespace; the level comes from
CAMPAIGNPULSE_LOG_LEVEL (default INFO).
"""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Configure the "campaignpulse" logger once. Safe to call repeatedly."""
    logger = logging.getLogger("campaignpulse")
    level_name = (level or os.environ.get("CAMPAIGNPULSE_LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
