import logging
import sys

HANDLER_NAME = "govsim"

def setup_logger(name: str = "govsim", level_name: str = "INFO"):
    """Configure the simulation logger with a configurable level.

    Library modules log through ``logging.getLogger(__name__)``; attaching the
    handler to the root logger lets those records reach stdout as well.
    """
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL
    }
    level = level_map.get(level_name.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    if not any(h.get_name() == HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%H:%M:%S')
        handler.setFormatter(formatter)
        handler.set_name(HANDLER_NAME)
        root.addHandler(handler)

    return logger
