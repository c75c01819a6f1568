from .utilities import log_exceptions, setup_logging

__all__ = [
    "log_exceptions",
    "setup_logging",
]
