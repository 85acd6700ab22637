"""
Logging Configuration

Why is this file needed?
Imports run on worker threads while the GUI thread renders, so the log format
carries the thread name. The mesh and fetch libraries log every file they
touch; they are held at WARNING unless the viewer itself runs at DEBUG.
"""
import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "robotviewer"
LOG_FORMAT = "%(asctime)s [%(threadName)s] %(name)s %(levelname)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Third-party loggers that flood the console while a robot is imported
NOISY_LOGGERS = ("trimesh", "yourdfpy", "urllib3", "requests")


def resolve_level(level: Union[int, str]) -> int:
    """Accepts a numeric level or a name such as 'debug'. Unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: Union[int, str] = logging.INFO,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the 'robotviewer' logger and returns it.

    Args:
        level: Logging level, numeric or by name.
        log_file: Optional path; the file is overwritten on each run.
    """
    level = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    third_party_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    logger.debug(f"Logging initialized at {logging.getLevelName(level)}"
                 + (f", writing to {log_file}" if log_file else ""))
    return logger
