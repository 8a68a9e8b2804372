"""Logging setup for the tailboard front ends."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"


def default_log_path(log_dir: Path = Path("logs")) -> Path:
    return log_dir / f"tailboard_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"


def configure_logging(log_file: Path | None = None, level: str = "INFO") -> Path:
    """Route log records to a file and return its path.

    The terminal UI owns stdout and stderr while it runs, so records only go
    to the file.
    """

    path = log_file or default_log_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(path)],
        force=True,
    )
    logging.getLogger(__name__).info("tailboard logging to %s", path)
    return path
