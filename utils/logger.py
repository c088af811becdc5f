import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%H:%M:%S"

logger = logging.getLogger("spotify_oauth.app")


def setup_logging(level=None, log_file=None):
    """Configure root logging for the command line app.

    ``level`` falls back to the LOG_LEVEL environment variable, then INFO.
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT, handlers=handlers, force=True)
    # httpx logs every request URL at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def log_info(message):
    logger.info(message)


def log_success(message):
    logger.info(f"✅ {message}")


def log_warning(message):
    logger.warning(f"⚠️ {message}")


def log_error(message):
    logger.error(f"❌ {message}")
