from __future__ import annotations

import logging
import logging.handlers
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from nagtrap.app_config import TrapSettings


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    log_file: Optional[Path] = None
    console: bool = True
    max_bytes: int = 1024 * 1024
    backup_count: int = 3


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds color to log levels for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        result = super().format(record)
        record.levelname = original_levelname
        return result


_LEVELS = ['CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG']


def effective_level(level: str, verbosity: int = 0) -> str:
    """Lower ``level`` by one step per ``-v``, never past DEBUG."""
    level = level.upper()
    if level not in _LEVELS:
        level = 'WARNING'
    index = min(_LEVELS.index(level) + max(verbosity, 0), len(_LEVELS) - 1)
    return _LEVELS[index]


class AppLogger:
    _configured: bool = False

    @staticmethod
    def configure(settings: "TrapSettings", verbosity: int = 0, force: bool = False) -> None:
        """
        Configure logging from TrapSettings.
        """
        config = LoggingConfig(
            level=effective_level(settings.log_level, verbosity),
            log_file=Path(settings.log_file) if settings.log_file else None,
        )
        AppLogger(config, force=force)

    def __init__(self, config: LoggingConfig, force: bool = False) -> None:
        if AppLogger._configured and not force:
            return
        self._configure(config)
        AppLogger._configured = True

    @staticmethod
    def get(name: str | None = None) -> logging.Logger:
        return logging.getLogger(name)

    @staticmethod
    def _configure(config: LoggingConfig) -> None:
        level = logging.getLevelName(config.level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

        root = logging.getLogger()
        root.setLevel(level)

        for handler in list(root.handlers):
            root.removeHandler(handler)

        fmt = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"

        if config.log_file is not None:
            config.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=config.log_file,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
            root.addHandler(file_handler)

        if config.console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            if sys.stderr.isatty():
                console_handler.setFormatter(ColoredFormatter(fmt=fmt, datefmt=datefmt))
            else:
                console_handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
            root.addHandler(console_handler)

        AppLogger._suppress_third_party_loggers()

    @staticmethod
    def _suppress_third_party_loggers() -> None:
        logging.getLogger("asyncio").setLevel(logging.WARNING)
        logging.getLogger("pysnmp").setLevel(logging.WARNING)
