"""
Logging setup.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(threadName)s - %(levelname)s - %(message)s"


def setup_logging(log_path: str, log_level: str, console: bool = True) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    handlers = [logging.FileHandler(log_path)]
    if console:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=getattr(logging, log_level),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # uvicorn access logs drown out detection events at INFO.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
