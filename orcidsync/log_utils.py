from __future__ import annotations

import logging
import os
import sys
from typing import Optional


# Define custom log levels for enhanced workflow visibility
STEP_LEVEL = 25  # Between INFO (20) and WARNING (30)
SUCCESS_LEVEL = 22  # Between INFO (20) and STEP (25)

# Register custom levels with the logging module
logging.addLevelName(STEP_LEVEL, "STEP")
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")


class LogSource:
    """
    Constants for data sources to ensure consistent naming and coloring.
    """
    ORCID = "ORCID"
    CROSSREF = "CrossRef"
    STORE = "Store"
    SYSTEM = "System"


class LogCategory:
    """
    Constants for log categories to replace indentation with semantic tagging.
    """
    RESEARCHER = "RESEARCHER"
    WORK = "WORK"
    FETCH = "FETCH"
    SEARCH = "SEARCH"
    MERGE = "MERGE"
    SAVE = "SAVE"
    SKIP = "SKIP"
    ERROR = "ERROR"
    PLAN = "PLAN"


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds ANSI color codes to log messages for terminal output,
    making levels, sources, and categories easy to tell apart.
    """

    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD_CYAN = "\033[1;36m"
    BOLD_GREEN = "\033[1;32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    BOLD_RED = "\033[1;31m"
    GREEN = "\033[32m"
    LIGHT_GREEN = "\033[92m"
    DARK_GRAY = "\033[90m"
    BOLD_MAGENTA = "\033[1;35m"
    BOLD_BLUE = "\033[1;34m"
    MAGENTA = "\033[35m"
    RESET = "\033[0m"

    LEVEL_COLORS = {
        "DEBUG": CYAN,
        "INFO": WHITE,
        "STEP": BOLD_CYAN,
        "SUCCESS": BOLD_GREEN,
        "WARNING": YELLOW,
        "ERROR": RED,
        "CRITICAL": BOLD_RED,
    }

    SOURCE_COLORS = {
        LogSource.ORCID: LIGHT_GREEN,
        LogSource.CROSSREF: YELLOW,
        LogSource.STORE: CYAN,
        LogSource.SYSTEM: WHITE,
    }

    CATEGORY_COLORS = {
        LogCategory.RESEARCHER: BOLD_MAGENTA,
        LogCategory.WORK: BOLD_BLUE,
        LogCategory.FETCH: CYAN,
        LogCategory.SEARCH: YELLOW,
        LogCategory.MERGE: BOLD_GREEN,
        LogCategory.SAVE: GREEN,
        LogCategory.SKIP: DARK_GRAY,
        LogCategory.ERROR: RED,
        LogCategory.PLAN: MAGENTA,
    }

    def __init__(self, fmt: str, use_color: bool = True, datefmt: Optional[str] = None):
        super().__init__(fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """
        Prefix the message with its source and category tags, colored when the
        output is a terminal.
        """
        original_msg = record.msg
        original_level = record.levelname

        source = getattr(record, "source", None)
        category = getattr(record, "category", None)

        parts = []
        if source:
            color = self.SOURCE_COLORS.get(source) if self.use_color else None
            parts.append(f"{color}[{source}]{self.RESET}" if color else f"[{source}]")
        if category:
            color = self.CATEGORY_COLORS.get(category) if self.use_color else None
            parts.append(f"{color}[{category}]{self.RESET}" if color else f"[{category}]")
        if parts:
            record.msg = f"{' '.join(parts)} {record.msg}"

        if self.use_color and record.levelname in self.LEVEL_COLORS:
            record.levelname = f"{self.LEVEL_COLORS[record.levelname]}{record.levelname}{self.RESET}"

        formatted = super().format(record)

        record.msg = original_msg
        record.levelname = original_level
        return formatted


class CategoryAdapter(logging.LoggerAdapter):
    """
    Adapter that moves the source and category keywords into the record extras.
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = kwargs.get("extra", {})

        source = kwargs.pop("source", None)
        if source:
            extra["source"] = source

        category = kwargs.pop("category", None)
        if category:
            extra["category"] = category

        kwargs["extra"] = extra
        return msg, kwargs


class Logger:
    """
    Thin wrapper over the standard logging module with colored console output,
    the custom STEP and SUCCESS levels, optional file mirroring, and
    source/category tagging.
    """

    LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(message)s"
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(self, name: str = "orcidsync"):
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False
        self._logger.handlers.clear()

        self._console_handler = logging.StreamHandler(sys.stdout)
        self._console_handler.setLevel(logging.INFO)
        self._console_handler.setFormatter(
            ColoredFormatter(self.LOG_FORMAT, use_color=sys.stdout.isatty(), datefmt=self.DATE_FORMAT)
        )
        self._logger.addHandler(self._console_handler)

        self._file_handler: Optional[logging.FileHandler] = None
        self._adapter = CategoryAdapter(self._logger, {})

    def set_log_file(self, path: str):
        """
        Mirror every record, debug included, to path. The file is truncated; a
        previously opened log file is closed first.
        """
        self.close()
        try:
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        except OSError as e:
            self._logger.error(f"Failed to open log file {path}: {e}")
            return
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(ColoredFormatter(self.LOG_FORMAT, use_color=False, datefmt=self.DATE_FORMAT))
        self._logger.addHandler(handler)
        self._file_handler = handler

    def set_quiet(self, quiet: bool = True):
        """
        Only show warnings and errors on the console; the log file is unaffected.
        """
        self._console_handler.setLevel(logging.WARNING if quiet else logging.INFO)

    def close(self):
        """
        Stop logging to file.
        """
        if self._file_handler is not None:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def step(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.log(STEP_LEVEL, msg, source=source, category=category)

    def debug(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.debug(msg, source=source, category=category)

    def info(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.info(msg, source=source, category=category)

    def warn(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.warning(msg, source=source, category=category)

    def error(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.error(msg, source=source, category=category)

    def success(self, msg: str, *, source: Optional[str] = None, category: Optional[str] = None):
        self._adapter.log(SUCCESS_LEVEL, msg, source=source, category=category)


# Global logger instance
logger = Logger()
