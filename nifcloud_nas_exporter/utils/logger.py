"""JSON logging for the exporter and its components."""

import logging
import sys
from typing import IO, Optional

from pythonjsonlogger import jsonlogger


LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'


def setup_logger(
    name: str = "nifcloud_nas_exporter",
    level: str = "INFO",
    stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Install a single JSON handler on the exporter logger.

    Component loggers are children (``logger.getChild(...)``) and write
    through this handler. Calling again replaces the previous handler and
    closes it.

    Args:
        name: Logger name
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream, stdout when omitted

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT, timestamp=True))
    logger.addHandler(handler)

    # Records stop here; the root logger stays untouched
    logger.propagate = False

    return logger
