"""
Common Logging Setup Module
"""

import logging

from . import JSONFormatter, OperationFilter, ServiceFilter, StructuredFormatter

# Driver loggers that flood DEBUG output with per-statement chatter
_NOISY_LOGGERS = ("aiosqlite",)

_setup_done = False


def get_logger(name: str) -> logging.Logger:
    """Module logger; configures logging with defaults on first use"""
    if not _setup_done:
        setup_logging()
    return logging.getLogger(name)


def setup_logging(
    service: str = "bookgraph",
    version: str = "0.1.0",
    level: str = "INFO",
    format_type: str = "structured",
):
    """
    Setup global logging configuration

    Safe to call again (the application factory does, once its config is
    loaded): the handler installed by a previous call is replaced, handlers
    installed by anyone else are left alone.

    Args:
        service: Service name
        version: Service version
        level: Logging level
        format_type: 'json' or 'structured'
    """
    global _setup_done

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        if getattr(handler, "_bookgraph_handler", False):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    handler._bookgraph_handler = True

    if format_type.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(StructuredFormatter())

    handler.addFilter(ServiceFilter(service, version))
    handler.addFilter(OperationFilter())
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    _setup_done = True
