"""Logging setup for the simtrack service and progress engine."""
import logging

LOGGER_NAME = "simtrack"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Configure the ``simtrack`` logger once; later calls only change the level."""
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not any(getattr(h, "_simtrack", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler._simtrack = True
        logger.addHandler(handler)

    logger.debug("logging initialized at %s", logging.getLevelName(level))
    return logger
