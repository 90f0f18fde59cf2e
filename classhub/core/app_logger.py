import logging

from classhub.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging() -> logging.Logger:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    logger = logging.getLogger("classhub")
    logger.setLevel(level)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = logging.getLogger("classhub")
    return base.getChild(name) if name else base
