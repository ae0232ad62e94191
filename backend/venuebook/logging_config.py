"""Root logger setup shared by the API process and Celery workers."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    """Send all venuebook.* loggers to stderr in one format."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
