"""
Console logging for the CLI scripts and the API server.

Log records go through PrettyFormatter (level color, icon, and the emitting
module for library records). The log_* helpers print progress banners
straight to stdout and are not routed through logging.
"""

import logging
import os
import sys
from typing import Iterable, Optional

from wcwidth import wcswidth

APP_LOGGER = "bandprint"

_BLUE = "\033[1;34m"
_CYAN = "\033[1;36m"
_GREEN = "\033[1;32m"
_GREY = "\033[90m"
_BOLD = "\033[1m"
_RESET = "\033[0m"


class PrettyFormatter(logging.Formatter):
    """One colored line per record; tracebacks follow on the next lines."""

    LEVELS = {
        # level: (color, icon)
        'DEBUG': ('\033[36m', '🔍'),
        'INFO': ('\033[32m', '✅'),
        'WARNING': ('\033[33m', '⚠️ '),
        'ERROR': ('\033[31m', '❌'),
        'CRITICAL': ('\033[35m', '🔥'),
    }

    def format(self, record):
        color, icon = self.LEVELS.get(record.levelname, (_RESET, ''))
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")

        # recognizers.bandpeak.matching -> bandpeak.matching
        source = ""
        if record.name.startswith("recognizers."):
            source = f"{_GREY}{record.name.split('.', 1)[1]}{_RESET} "

        line = (
            f"{_BOLD}[{timestamp}]{_RESET} "
            f"{color}{icon} {record.levelname:<8}{_RESET} │ "
            f"{source}{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: Optional[str] = None,
                  names: Iterable[str] = (APP_LOGGER, "recognizers")) -> logging.Logger:
    """
    Configure pretty console logging for the application and library loggers.

    The level defaults to $BANDPRINT_LOG_LEVEL, then INFO. Calling this twice
    does not stack handlers.
    """
    level = (level or os.environ.get("BANDPRINT_LOG_LEVEL", "INFO")).upper()

    for name in names:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False
        if any(getattr(h, "_bandprint", False) for h in logger.handlers):
            continue
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(PrettyFormatter())
        console_handler._bandprint = True
        logger.addHandler(console_handler)

    return logging.getLogger(APP_LOGGER)


def _pad_to_width(text: str, columns: int) -> str:
    """Center `text` in `columns` terminal cells; emoji count as two cells."""
    cells = wcswidth(text)
    if cells < 0:
        # non-printable characters; wcswidth gives up
        cells = len(text)
    spare = max(0, columns - cells)
    return " " * (spare // 2) + text + " " * (spare - spare // 2)


def log_section(title: str, width: int = 50):
    """Boxed banner that opens a phase (server start-up, an indexing run)."""
    print(f"\n{_BLUE}╔{'═' * width}╗{_RESET}")
    print(f"{_BLUE}║{_RESET} {_pad_to_width(title, width - 2)} {_BLUE}║{_RESET}")
    print(f"{_BLUE}╚{'═' * width}╝{_RESET}\n")


def log_step(step_num: int, description: str):
    print(f"  {_CYAN}[Step {step_num}]{_RESET} ➜  {description}")


def log_success(message: str):
    print(f"  {_GREEN}✓{_RESET} {message}")


def log_detail(key: str, value):
    """Indented `key: value` line under the current step."""
    print(f"      {_GREY}•{_RESET} {key}: {_BOLD}{value}{_RESET}")
