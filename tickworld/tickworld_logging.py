"""Logging helpers for tickworld.

All loggers created here are children of a single package logger, so a user can
switch tickworld output on and off in one place::

    from tickworld.tickworld_logging import DEBUG, log_to_stderr

    log_to_stderr(DEBUG)

Modules obtain their logger with ``create_module_logger()``; the
``method_logger`` and ``function_logger`` decorators log every call at DEBUG.
"""

from __future__ import annotations

import inspect
import logging
from functools import wraps
from logging import CRITICAL, DEBUG, ERROR, INFO, WARNING

__all__ = [
    "CRITICAL",
    "DEBUG",
    "ERROR",
    "INFO",
    "LOGGER_NAME",
    "WARNING",
    "create_module_logger",
    "function_logger",
    "get_module_logger",
    "log_to_stderr",
    "method_logger",
]

LOGGER_NAME = "TICKWORLD"
DEFAULT_LEVEL = DEBUG

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def create_module_logger(name: str | None = None) -> logging.Logger:
    """Create a module logger.

    Args:
        name: name of the module for which the logger is created; when None,
            the name of the calling module is used.
    """
    if name is None:
        frame = inspect.stack()[1]
        module = inspect.getmodule(frame[0])
        name = module.__name__ if module is not None else "__main__"
    return get_module_logger(name)


def get_module_logger(name: str) -> logging.Logger:
    """Return the logger for the module ``name`` below the package logger."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def method_logger(name: str):
    """Decorator that logs every call of a method at DEBUG.

    Args:
        name: name of the module in which the method is defined
    """
    logger = get_module_logger(name)

    def decorator(meth):
        # qualname carries the class, e.g. Model.__init__
        qualname = meth.__qualname__

        @wraps(meth)
        def wrapper(self, *args, **kwargs):
            logger.debug(
                f"calling {type(self).__name__}:{qualname} with {args} and {kwargs}"
            )
            return meth(self, *args, **kwargs)

        return wrapper

    return decorator


def function_logger(name: str):
    """Decorator that logs every call of a module level function at DEBUG.

    Args:
        name: name of the module in which the function is defined
    """
    logger = get_module_logger(name)

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger.debug(f"calling {func.__name__} with {args} and {kwargs}")
            return func(*args, **kwargs)

        return wrapper

    return decorator


def log_to_stderr(level: int | None = None, pass_root_logger_level: bool = False):
    """Log tickworld messages to stderr.

    Calling this more than once does not add duplicate handlers.

    Args:
        level: the logging level; defaults to DEBUG
        pass_root_logger_level: when True, use the level of the root logger
            instead of ``level``

    Returns:
        the package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    if pass_root_logger_level:
        level = logging.getLogger().level
    elif level is None:
        level = DEFAULT_LEVEL
    logger.setLevel(level)

    handler = next(
        (h for h in logger.handlers if getattr(h, "_tickworld_stderr", False)), None
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "[%(name)s %(levelname)s] %(asctime)s - %(message)s",
                "%H:%M:%S",
            )
        )
        handler._tickworld_stderr = True
        logger.addHandler(handler)
    handler.setLevel(level)
    return logger
