import logging
import logging.config
import os


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": "INFO",
            "stream": "ext://sys.stderr",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join("logs", "strikesim.log"),
            "maxBytes": 10_485_760,
            "backupCount": 5,
            "formatter": "standard",
            "level": "DEBUG",
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console", "file"],
    },
}

_configured = False


def setup_logging(level: int | None = None):
    """Configure process-wide logging once; later calls only adjust the level."""
    global _configured
    if not _configured:
        os.makedirs("logs", exist_ok=True)
        logging.config.dictConfig(LOGGING_CONFIG)
        _configured = True
    if level is not None:
        logging.getLogger().setLevel(level)
