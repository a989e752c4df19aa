# src/config/logging_config.py

"""Run-scoped logging for pricelist_intel.

A ``collect`` / ``generate`` / ``health`` invocation writes one file,
``logs/run_YYYYMMDD_HHMMSS.log``, that receives every record emitted
under the ``pricelist_intel`` logger tree at DEBUG and above. Only
warnings and errors reach the terminal so the rich result tables stay
readable.

Brands are collected one after another, so each brand's adapter output
forms one contiguous block in the run file.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER_NAME = "pricelist_intel"

FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# pdfminer logs every parsed object at DEBUG
NOISY_LOGGERS: tuple[str, ...] = ("pdfminer", "urllib3", "charset_normalizer")


def _file_handler(log_file: Path) -> logging.FileHandler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler() -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _existing_log_file(logger: logging.Logger) -> Path | None:
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run file and console handlers to ``pricelist_intel``.

    Calling it again in the same process keeps the handlers already
    attached and returns the current run file.

    Args:
        logs_dir: Where to create the run file; ``Settings.LOGS_DIR``
            when omitted.

    Returns:
        Path of this run's log file.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    existing = _existing_log_file(root_logger)
    if existing is not None:
        return existing

    run_dir = logs_dir or Settings.LOGS_DIR
    run_dir.mkdir(parents=True, exist_ok=True)
    log_file = run_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    if not root_logger.handlers:
        root_logger.addHandler(_console_handler())
    root_logger.addHandler(_file_handler(log_file))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.debug("Run log opened at %s", log_file)
    return log_file
