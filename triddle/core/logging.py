"""
Logging setup.

Every module logs through ``logging.getLogger(__name__)``. Lifecycle and
startup messages also carry an ``event`` attribute (passed via ``extra``)
so they can be matched without parsing the message text.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once. Later calls only adjust the level."""
    resolved = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger("triddle").setLevel(resolved)


def log_event(logger: logging.Logger, level: int, event: str, message: str, *args, **fields) -> None:
    """Log ``message`` tagged with a structured ``event`` name and extra fields."""
    extra = {"event": event}
    extra.update(fields)
    logger.log(level, message, *args, extra=extra)
