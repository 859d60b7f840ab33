import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
ROOT_LOGGER = "luptonpy"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Attaches a single stdout handler to the application logger.
    Repeated calls only update the level.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Module loggers live under ``luptonpy``; dotted module names are used as-is.
    """
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
