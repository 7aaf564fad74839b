# core/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 3

_configured = False


def _file_handler(path: str) -> RotatingFileHandler:
    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS)


def setup_logging():
    """
    Configure the root logger once per process.
    Log lines always go to stderr; stdout is kept for search results.
    """
    global _configured
    if _configured:
        return

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        handlers = [logging.StreamHandler(sys.stderr)]
        if os.getenv("LOG_TO_FILE", "false").lower() == "true":
            log_file = os.getenv("LOG_FILE", "./catalog_search.log")
            try:
                handlers.append(_file_handler(log_file))
            except OSError as e:
                root.warning("Failed to open log file %s: %s", log_file, e)

        formatter = logging.Formatter(LOG_FORMAT)
        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            root.addHandler(handler)

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
