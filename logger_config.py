import logging.config
import sys


def configure_logging(level: str = "INFO"):
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,

        # Formatters: how the log lines look
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
        },

        # Handlers: where the logs go. stderr keeps them apart from the game text on stdout
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "stream": sys.stderr,
            },
        },

        # Loggers
        "loggers": {
            "": {  # root logger
                "handlers": ["console"],
                "level": level,
                "propagate": True
            },
        }
    }

    logging.config.dictConfig(logging_config)
