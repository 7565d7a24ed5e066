"""Logging setup using Loguru.

Standard library loggers (uvicorn, SQLAlchemy) are routed into Loguru so the
whole process writes through one sink.
"""

import json
import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """Forward standard library log records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside of the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _format_json(record) -> str:
    fields = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["extra"].get("name", record["name"]),
        "function": record["function"],
        "line": record["line"],
    }
    if record["exception"]:
        fields["exception"] = repr(record["exception"].value)
    # Loguru treats the returned string as a format template
    record["extra"]["serialized"] = json.dumps(fields, default=str)
    return "{extra[serialized]}\n"


TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """Configure Loguru with a single stdout sink.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        log_format: "json" for one JSON object per line, anything else for
            colorized text.
    """
    logger.remove()
    logger.configure(extra={"name": "recipe_manager"})

    if log_format == "json":
        logger.add(
            sys.stdout,
            format=_format_json,
            level=log_level.upper(),
            colorize=False,
            backtrace=True,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=TEXT_FORMAT,
            level=log_level.upper(),
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in ["uvicorn.access", "sqlalchemy.engine", "multipart"]:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str):
    """Return a Loguru logger bound to `name` (typically __name__)."""
    return logger.bind(name=name)
