"""
Logging Configuration

Every module in the package logs key/value events through get_logger.
Nothing is configured on import; applications call configure_logging once.

Usage:
    from orbit_visibility.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("visibility_refreshed", visible=12, tracked=1000)
    logger.warning("element_set_dropped", name="FOO", reason="line1 prefix")
"""

import logging
import sys
from typing import Optional

import structlog

# Record layout for the stdlib handlers
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    level: int = logging.INFO, log_file: Optional[str] = None, json: bool = False
) -> None:
    """
    Install console (and optional file) handlers and route structlog through them.

    Parameters
    ----------
    level : int
        Root level, e.g. logging.DEBUG to see per-object exclusions
    log_file : str, optional
        Optional file that receives a copy of every record
    json : bool
        Render events as JSON lines instead of key=value console output.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Structured logger for one module.

    Parameters
    ----------
    name : str
        Dotted module name, usually __name__

    Returns
    -------
    structlog.stdlib.BoundLogger
        Structured logger bound to the stdlib logger of that name
    """
    return structlog.get_logger(name)
