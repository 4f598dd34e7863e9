# core/log_manager.py
import logging
import sys

from pob_flashcards.config import LOG_LEVEL

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _build_logger() -> logging.Logger:
    """Creates the application logger with a single stream handler."""
    app_logger = logging.getLogger('pob_flashcards')
    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        app_logger.addHandler(handler)
    app_logger.setLevel(LOG_LEVEL)
    return app_logger


logger = _build_logger()
