import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_PACKAGE_LOGGER = "large_objects"


def configure_logging(level=logging.WARNING, log_file=None):
    """Configure logging for the large_objects package.

    The console handler only shows `level` and above while the root logger
    stays at INFO or lower, so a job log sink still receives progress records.

    Args:
        level: The console logging level (default: logging.WARNING)
        log_file: Optional path to a log file
    """
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    handlers: list[logging.Handler] = [console]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=min(level, logging.INFO),
        format=_FORMAT,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )


@contextmanager
def job_log_sink(log_file: Path | None) -> Iterator[logging.Handler | None]:
    """Append package log records to `log_file` for the duration of a job."""
    if log_file is None:
        yield None
        return
    logger = logging.getLogger(_PACKAGE_LOGGER)
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.setLevel(logging.INFO)
    prev_level = logger.level
    if not logger.isEnabledFor(logging.INFO):
        logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    try:
        yield handler
    finally:
        logger.removeHandler(handler)
        logger.setLevel(prev_level)
        handler.close()
