"""Logging setup shared by the web app and scripts."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO, which drowns out our own messages.
    logging.getLogger("httpx").setLevel(logging.WARNING)
