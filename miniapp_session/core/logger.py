from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "miniapp_session"
LOG_FILE = "miniapp_session.log"


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _file_handlers(logger: logging.Logger) -> list[RotatingFileHandler]:
    return [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def _console_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)]


def setup_logging(log_dir: str = "logs", *, level: str = "INFO", console: bool = True) -> logging.Logger:
    """
    Rotating text log (1 MB x 5) under log_dir plus an optional console handler.

    Safe to call again: the file handler is re-pointed when log_dir changes, the console
    handler is added or removed to match `console`, and the level is updated.
    """
    os.makedirs(log_dir, exist_ok=True)
    text_path = os.path.abspath(os.path.join(log_dir, LOG_FILE))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.getLevelName(level.upper()))
    logger.propagate = False

    for h in _file_handlers(logger):
        if os.path.abspath(h.baseFilename) != text_path:
            logger.removeHandler(h)
            h.close()
    if not _file_handlers(logger):
        h = RotatingFileHandler(text_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        h.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(h)

    consoles = _console_handlers(logger)
    if console and not consoles:
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(sh)
    elif not console:
        for h in consoles:
            logger.removeHandler(h)

    return logger
