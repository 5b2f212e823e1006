import logging
import logging.config

from aristotest.core.config import Settings


def configure_logging(settings: Settings):
    log_level = settings.log_level.upper()
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "app.log"
    runtime_file = log_dir / "runtime.log"
    authoring_file = log_dir / "authoring.log"

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": log_level,
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "default",
                "level": log_level,
                "filename": str(log_file),
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 3,
                "encoding": "utf-8",
            },
            "runtime_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "default",
                "level": log_level,
                "filename": str(runtime_file),
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 3,
                "encoding": "utf-8",
            },
            "authoring_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "default",
                "level": log_level,
                "filename": str(authoring_file),
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 3,
                "encoding": "utf-8",
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console", "file"],
        },
        "loggers": {
            # Session lifecycle, joins and graded answers
            "runtime": {
                "level": log_level,
                "handlers": ["console", "runtime_file"],
                "propagate": False,
            },
            # Quiz CRUD and AI drafting
            "authoring": {
                "level": log_level,
                "handlers": ["console", "authoring_file"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(config)
