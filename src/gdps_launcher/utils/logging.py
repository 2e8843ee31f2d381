"""
Logging infrastructure for GDPS Launcher.

Console output goes through Rich on stderr so it never mixes with command
output on stdout. A rotating log file (text or JSON lines) keeps the full
history of scans, patches and launches.
"""

import json
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from gdps_launcher.utils.config import LoggingConfig

Level = Union[str, int]

# Chatty network libraries, kept at WARNING unless explicitly requested
HTTP_LOGGERS = ("httpx", "httpcore", "h11", "h2", "hpack")

PLAIN_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | %(message)s"

# Attributes every LogRecord has; anything else came in through ``extra=``
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _to_level(level: Level) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def _set_levels(names: Iterable[str], level: int) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


class LauncherLogger:
    """Owns the root logger configuration for the launcher process."""

    def __init__(self):
        self._loggers: Dict[str, logging.Logger] = {}
        self._setup_done = False

    @property
    def is_configured(self) -> bool:
        return self._setup_done

    def setup_logging(
        self,
        enabled: bool = True,
        level: Level = logging.INFO,
        console_level: Level = logging.WARNING,
        log_file: Optional[Path] = None,
        format_type: str = "text",
        enable_rich: bool = True,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
        suppress_http: bool = True,
        force: bool = False,
    ) -> None:
        """
        Configure the root logger.

        Only the first call has an effect unless ``force`` is set.

        Args:
            enabled: When False, everything below CRITICAL is dropped
            level: Level for the log file
            console_level: Level for stderr output
            log_file: Rotating log file, or None for console only
            format_type: ``text`` or ``json``
            enable_rich: Use Rich for console output
            max_bytes: Log file size before rotation
            backup_count: Rotated files to keep
            suppress_http: Keep HTTP client libraries at WARNING
            force: Reconfigure even if already configured
        """
        if self._setup_done and not force:
            return

        root = logging.getLogger()
        root.handlers.clear()
        self._setup_done = True

        if not enabled:
            root.setLevel(logging.CRITICAL)
            _set_levels(HTTP_LOGGERS, logging.CRITICAL)
            return

        file_level = _to_level(level)
        stderr_level = _to_level(console_level)

        console_handler = self._console_handler(enable_rich, format_type)
        console_handler.setLevel(stderr_level)
        root.addHandler(console_handler)

        if log_file:
            file_handler = self._file_handler(Path(log_file), format_type, max_bytes, backup_count)
            file_handler.setLevel(file_level)
            root.addHandler(file_handler)
            root.setLevel(min(file_level, stderr_level))
        else:
            root.setLevel(stderr_level)

        if suppress_http:
            _set_levels(HTTP_LOGGERS, logging.WARNING)

    def setup_from_config(
        self,
        config: "LoggingConfig",
        log_file: Optional[Path] = None,
        debug: bool = False,
        verbose: bool = False,
    ) -> None:
        """
        Configure logging from the ``[logging]`` config section.

        ``debug`` lowers both handlers to DEBUG; ``verbose`` shows INFO on
        the console.
        """
        console_level = config.console_level
        if debug:
            console_level = "DEBUG"
        elif verbose:
            console_level = "INFO"

        self.setup_logging(
            enabled=config.enabled,
            level="DEBUG" if debug else config.level,
            console_level=console_level,
            log_file=log_file,
            format_type=config.format_type,
            enable_rich=config.enable_rich,
            max_bytes=config.max_bytes,
            backup_count=config.backup_count,
            suppress_http=config.suppress_http and not debug,
        )

    def get_logger(self, name: str) -> logging.Logger:
        """Get a named logger."""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]

    @staticmethod
    def _console_handler(enable_rich: bool, format_type: str) -> logging.Handler:
        if enable_rich:
            # markup off: server names and descriptions may contain [brackets]
            return RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                markup=False,
                show_path=False,
            )
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            JSONFormatter() if format_type == "json" else logging.Formatter(PLAIN_CONSOLE_FORMAT)
        )
        return handler

    @staticmethod
    def _file_handler(
        log_file: Path, format_type: str, max_bytes: int, backup_count: int
    ) -> logging.Handler:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(
            JSONFormatter() if format_type == "json" else logging.Formatter(FILE_FORMAT)
        )
        return handler


# Global logger instance
_logger_manager = LauncherLogger()

setup_logging = _logger_manager.setup_logging
setup_from_config = _logger_manager.setup_from_config
get_logger = _logger_manager.get_logger
