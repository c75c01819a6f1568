"""Logging helpers shared by the library and the command line tool."""

import functools
import logging
from typing import Callable


LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def log_exceptions(func: Callable) -> Callable:
    """
    Decorator that logs exceptions with full traceback and re-raises them.

    Example:
    >>> from pysiggen.tools import log_exceptions
    >>>
    >>> class Session:
    ...
    ...     @log_exceptions
    ...     def autodetect(cls):
    ...         ...

    The exception is logged on the logger of the module that defines
    the function, then raised again unchanged.
    """
    log = logging.getLogger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            log.error(f"{func.__qualname__} failed: {e}", exc_info=True)
            raise

    return wrapper


def setup_logging(verbose: int = 0) -> None:
    """
    Configure root logging for command line use.

    Args:
        verbose: 0 = warnings, 1 = info, 2+ = debug (serial traffic)
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
