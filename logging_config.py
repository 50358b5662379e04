import logging
import os
import sys

_QUIET_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "openai",
    # Stage timings are only interesting when debugging
    "concierge.logging.flight_recorder",
)


def setup_logging(level=None):
    """Send concierge logs to stdout; CONCIERGE_LOG_LEVEL overrides the default INFO"""
    if level is None:
        level = logging.getLevelName(os.getenv("CONCIERGE_LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter('%(asctime)s | %(name)s | %(levelname)s | %(message)s', datefmt='%H:%M:%S')
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger("concierge").setLevel(level)


if __name__ == "__main__":
    setup_logging()
