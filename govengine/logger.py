"""
govengine Logging System
========================

Process-wide logging for the governance engine: a `rich` console handler
with governance-aware highlighting and an optional rotating log file.

Proposal descriptions, addresses and payloads are caller-supplied, so every
record passes through `TerminalSafeFormatter` before it reaches a handler.

Usage:
    >>> from govengine.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Engine deployed")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


# Define log file location relative to the working directory
LOG_FILE_PATH = Path.cwd() / "logs" / "govengine.log"

GOVENGINE_THEME = Theme(
    {
        "govengine.address":        "cyan",
        "govengine.arrow":          "bold yellow",
        "govengine.level_critical": "bold red reverse",
        "govengine.level_debug":    "bold dim",
        "govengine.level_error":    "bold red",
        "govengine.level_info":     "bold green",
        "govengine.level_warning":  "bold yellow",
        "govengine.logger_name":    "magenta",
        "govengine.proposal_id":    "bold white",
        "govengine.selector":       "bold blue",
        "govengine.timestamp":      "bold cyan",
    }
)


def _fallback(setting: str, default: str, reason: str) -> str:
    print(
        f"govengine.logger - invalid {setting} ({reason}), using {default!r}",
        file=sys.stderr,
    )
    return default


class LogManager:
    """
    Singleton owner of the root logger configuration.

    configure() is idempotent; reconfigure() drops the installed handlers and
    applies new settings (used when govengine.toml overrides the .env values).
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._configured = False
        return cls._instance

    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """Return *log_format* if logging accepts it, else the default format."""
        default = str(LOG_FORMAT.default())
        if not log_format:
            return default
        log_format = str(log_format)
        try:
            formatter = logging.Formatter(fmt=log_format, validate=True)
            formatter.format(logging.makeLogRecord({"msg": "format check", "levelname": "INFO"}))
        except (ValueError, TypeError, KeyError) as e:
            return _fallback("log format", default, str(e))
        return log_format

    @staticmethod
    def validate_date_format(date_format: str) -> str:
        """Return *date_format* if it is a usable strftime pattern, else the default."""
        default = str(LOG_DATE_FORMAT.default())
        if not date_format:
            return default
        date_format = str(date_format)
        if not re.search(r"%[A-Za-z]", date_format):
            return _fallback("date format", default, "no strftime directive")
        try:
            time.strftime(date_format)
        except ValueError as e:
            return _fallback("date format", default, str(e))
        return date_format

    def _build_handlers(
        self,
        level: int,
        log_file: Optional[Path],
        console_output: bool,
        file_output: bool,
    ) -> List[logging.Handler]:
        # UTC timestamps regardless of host timezone
        formatter = TerminalSafeFormatter(
            fmt=self.validate_log_format(LOG_FORMAT),
            datefmt=self.validate_date_format(LOG_DATE_FORMAT) + " UTC",
        )
        formatter.converter = time.gmtime

        handlers: List[logging.Handler] = []
        if console_output and LOG_CONSOLE_HIGHLIGHTING:
            handlers.append(RichHandler(
                console=Console(theme=GOVENGINE_THEME, highlight=False),
                highlighter=GovernanceLogHighlighter(),
                keywords=[],
                rich_tracebacks=True,
                show_path=False,
                show_time=False,
                show_level=False,
                markup=False,
            ))
        elif console_output:
            handlers.append(logging.StreamHandler(sys.stdout))

        if file_output:
            path = log_file or LOG_FILE_PATH
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                filename=str(path),
                maxBytes=LOG_MAX_FILE_SIZE,
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            ))

        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
        return handlers

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install handlers on the root logger, once.

        Args:
            log_level: level name, defaults to LOG_LEVEL from .env
            log_file: rotating log file path, defaults to logs/govengine.log
            console_output: attach the rich console handler
            file_output: attach the file handler, defaults to LOG_FILE_OUTPUT
        """
        with self._lock:
            if self._configured:
                return
            level = getattr(logging, str(log_level or LOG_LEVEL).upper(), logging.INFO)
            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)

            root = logging.getLogger()
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            root.setLevel(level)
            for handler in self._build_handlers(level, log_file, console_output, file_output):
                root.addHandler(handler)
            self._configured = True

    def reconfigure(self, **kwargs) -> None:
        """Drops the current handlers and configures again with *kwargs*."""
        with self._lock:
            self._configured = False
        self.configure(**kwargs)

    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    Formatter that strips terminal escape sequences and control characters
    (tab and newline excepted) so logged values cannot forge log lines.
    """

    # ANSI CSI sequences, two-byte ESC sequences, then any remaining C0/DEL
    _unsafe_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]|[\x00-\x08\x0b-\x1f\x7f]"
    )

    @classmethod
    def sanitize(cls, text: str) -> str:
        return cls._unsafe_re.sub("", text) if text else text

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class GovernanceLogHighlighter(RegexHighlighter):
    """Colors proposal ids, addresses, 4-byte selectors and level names."""

    base_style = "govengine."
    highlights = [
        r"(?P<arrow>→)",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>govengine[\w.]*)(?=\s-\s)",
        r"(?P<address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<selector>\b0x[0-9a-fA-F]{8}\b)",
        r"(?P<proposal_id>#\d+\b)",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


_manager = LogManager()

def get_logger(name: str) -> logging.Logger:
    """Logger for *name*, configuring the logging system on first use."""
    return _manager.get_logger(name)


def configure_logging(
    level: str,
    file_output: bool = False,
    file_path: Optional[Path] = None,
) -> None:
    """Re-applies logging settings loaded from govengine.toml."""
    _manager.reconfigure(
        log_level=level,
        log_file=file_path,
        file_output=file_output,
    )

# Auto-configure on import to ensure immediate availability
_manager.configure()
