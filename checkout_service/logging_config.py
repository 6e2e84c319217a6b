"""
logging_config.py — Centralized Logging Configuration for the Checkout Service

Configures one logging setup for every handler in the service so that cart
rejections, provider failures and unexpected errors end up in the same stream.

Features:
    • Console output (stdout), suitable for serverless and container platforms
    • Optional file output when LOG_FILE is set
    • Process ID tagging for multi-worker visibility
    • Reduced verbosity for the HTTP client libraries (httpx, httpcore)
"""

import logging
import os
import sys

LOG_FORMAT = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s'


def setup_logging(level=None, log_file=None):
    """
    Configures the global logging system for the application.

    Args:
        level (str, optional): Log level name. Falls back to LOG_LEVEL, then INFO.
        log_file (str, optional): Extra file destination. Falls back to LOG_FILE.

    Notes:
        - Calling this more than once replaces the previous handlers, so the
          ASGI server and test runs do not end up with duplicated output.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    log_file = log_file or os.environ.get("LOG_FILE")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Reduce verbosity from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name):
    """
    Returns a logger instance for a given module or component name.

    Args:
        name (str): The logger name, typically the module's __name__.

    Returns:
        logging.Logger: A logger that follows the global format and handlers.
    """
    return logging.getLogger(name)
