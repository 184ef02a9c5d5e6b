import logging
import os
from logging.handlers import RotatingFileHandler

from ledgerbook.core.config import settings

# Logger name
LOG_NAME = os.getenv("APP_LOGGER_NAME", "ledgerbook")

# Create logger
logger = logging.getLogger(LOG_NAME)
logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.DEBUG))

# Log format with ISO-like timestamp including milliseconds
LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(filename)s - %(funcName)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Formatter
formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

# Console handler
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Optional rotating file handler (disabled by default)
    if settings.LOG_TO_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE_PATH)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(settings.LOG_FILE_PATH, maxBytes=5 * 1024 * 1024, backupCount=3)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

# Avoid duplicate logs when imported in multiple modules
logger.propagate = False
