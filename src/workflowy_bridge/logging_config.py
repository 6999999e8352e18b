"""Logging setup for the bridge.

stdout carries the MCP stdio transport, so every sink writes to stderr.
"""

import sys

from loguru import logger

_FORMAT = "{level.icon} {message}"
_VERBOSE_FORMAT = "{time:HH:mm:ss.SSS} {level: <7} {name}:{line} {message}"


def configure_logging(*, verbose: bool = False) -> None:
    """Replace loguru's default sink with a single stderr sink.

    Verbose mode logs at DEBUG with timestamps and call sites. Variable
    values are never rendered into tracebacks (``diagnose=False``); the API
    client's frames hold the bearer credential.
    """
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG", format=_VERBOSE_FORMAT, diagnose=False)
    else:
        logger.add(sys.stderr, level="INFO", format=_FORMAT, diagnose=False)
