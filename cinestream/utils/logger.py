import os
import sys
from typing import Optional

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def config(log_path: Optional[str] = None):
    """
    Configure the global Loguru logger.

    Always logs to stdout at LOG_LEVEL. When `log_path` (or LOG_PATH) is set,
    a plain-text rotating file sink is added as well. Safe to call repeatedly;
    existing sinks are replaced.
    """
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logger.remove()
    logger.add(sys.stdout, level=level, colorize=True, format=_FORMAT)

    path = log_path or os.environ.get("LOG_PATH", "").strip()
    if path:
        logger.add(
            path,
            level=level,
            colorize=False,
            format=_FORMAT,
            rotation="10 MB",
            retention=5,
            enqueue=True,
        )
