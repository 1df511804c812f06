"""Logging setup for the EventHub API.

Application records go to stdout below WARNING and to stderr at WARNING and
above, so container log collectors can tell failures apart. Chatty library
loggers are capped so request logs stay readable.
"""

import logging
import sys
from typing import Optional

from eventhub.config import config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Library loggers that log every statement or HTTP call at INFO
NOISY_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "urllib3": logging.WARNING,
    "mailgun": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


class BelowWarningFilter(logging.Filter):
    def filter(self, record):
        return record.levelno < logging.WARNING


def _resolve_level(level: Optional[str]) -> int:
    name = (level or config.get("log_level") or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Optional[str] = None):
    """Install the stdout/stderr handler pair on the root logger.

    Safe to call more than once: existing root handlers are replaced, so
    reloading the app under uvicorn does not duplicate every line.

    Args:
        level: Level name overriding ``LOG_LEVEL`` from the environment
    """
    formatter = logging.Formatter(LOG_FORMAT)

    out = logging.StreamHandler(sys.stdout)
    out.setLevel(logging.DEBUG)
    out.addFilter(BelowWarningFilter())
    out.setFormatter(formatter)

    err = logging.StreamHandler(sys.stderr)
    err.setLevel(logging.WARNING)
    err.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    root.handlers.clear()
    root.addHandler(out)
    root.addHandler(err)

    for name, floor in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(floor)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
