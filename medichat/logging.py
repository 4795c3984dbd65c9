"""
Logging configuration.
Level comes from LOG_LEVEL; uvicorn and medichat loggers follow it. OpenAI failures are logged
with logger.exception (medichat/services/analyze.py).
"""
import logging
import sys

from medichat.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int | str | None = None) -> None:
    level = level if level is not None else settings.log_level
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "medichat"):
        logging.getLogger(name).setLevel(level)
