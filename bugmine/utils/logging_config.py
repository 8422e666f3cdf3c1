import logging
import sys
import os
from datetime import datetime

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers whose records must reach the root handlers
_PIPELINE_LOGGERS = ("bugmine", "main", "uvicorn", "uvicorn.error", "uvicorn.access")


class ColoredFormatter(logging.Formatter):
    """Console formatter coloring each record by level; unknown levels stay plain."""

    RESET = "\x1b[0m"
    LEVEL_COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)
        self._by_level = {
            level: logging.Formatter(color + LOG_FORMAT + self.RESET, datefmt=DATE_FORMAT)
            for level, color in self.LEVEL_COLORS.items()
        }

    def format(self, record):
        formatter = self._by_level.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


def setup_logging(level=logging.INFO, log_dir="logs"):
    """
    Route all pipeline logging through the root logger.

    Console output goes to stderr so stdout stays free for the fileset
    report. With ``log_dir`` set, records are also appended to a daily
    ``bugmine_YYYYMMDD.log`` kept for postmortem inspection of failed runs.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ColoredFormatter())
    root_logger.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"bugmine_{datetime.now():%Y%m%d}.log")
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    for name in _PIPELINE_LOGGERS:
        pipeline_logger = logging.getLogger(name)
        pipeline_logger.setLevel(level)
        pipeline_logger.propagate = True

    root_logger.info("Logging initialized (console%s).", " + file" if log_dir else "")
