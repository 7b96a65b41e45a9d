import logging
import logging.config
import os
from datetime import datetime
from storefront.core.config import settings

LOG_STREAMS = ("app", "access", "error", "audit")
MAX_LOG_BYTES = 10 * 1024 * 1024


def _file_handler(log_dir: str, stream: str, formatter: str, level: str, stamp: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": os.path.join(log_dir, stream, f"{stream}-{stamp}.log"),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 10,
        "encoding": "utf-8",
    }


def build_logging_config(log_dir: str, level: str) -> dict:
    """dictConfig for console plus one rotating file per stream, dated per start"""
    stamp = datetime.now().strftime("%Y-%m-%d")
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "short": {
                "format": "%(asctime)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "app_file": _file_handler(log_dir, "app", "detailed", level, stamp),
            "error_file": _file_handler(log_dir, "error", "detailed", "ERROR", stamp),
            "access_file": _file_handler(log_dir, "access", "short", "INFO", stamp),
            "audit_file": _file_handler(log_dir, "audit", "short", "INFO", stamp),
        },
        "loggers": {
            "": {
                "level": level,
                "handlers": ["console", "app_file", "error_file"],
                "propagate": False,
            },
            "access": {
                "level": "INFO",
                "handlers": ["access_file", "console"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            # Admin mutations, written by log_user_action
            "storefront.audit": {
                "level": "INFO",
                "handlers": ["audit_file", "console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "INFO" if settings.DATABASE_ECHO else "WARNING",
                "handlers": ["app_file"],
                "propagate": False,
            },
        },
    }


def setup_logging():
    """Setup application logging configuration"""
    log_dir = settings.LOG_DIR
    for stream in LOG_STREAMS:
        os.makedirs(os.path.join(log_dir, stream), exist_ok=True)

    logging.config.dictConfig(build_logging_config(log_dir, settings.LOG_LEVEL))

    logger = logging.getLogger(__name__)
    logger.info(f"🚀 {settings.PROJECT_NAME} - Logging configured")
    logger.info(f"📝 Log level: {settings.LOG_LEVEL}")
    logger.info(f"🗂️  Logs directory: {log_dir}/")
