# app/utils/logging.py
import logging
import sys

from app.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Jednorazowa konfiguracja root loggera (stdout)."""
    logging.basicConfig(
        format=_FORMAT,
        stream=sys.stdout,
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
    )
    #redis i sqlalchemy sa zbyt gadatliwe na INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
