#!/usr/bin/env python3
"""
Logging utilities for SyncAI.

This module provides a centralized logging system with rich console output,
an optional plain colored console mode, and rotating file logging under the
SyncAI home directory.
"""

import sys
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Dict

from colorama import init as colorama_init, Fore, Style
from rich.console import Console
from rich.logging import RichHandler

from .platform import default_home

colorama_init()


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name for plain console logging."""

    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.MAGENTA,
    }

    def __init__(self, fmt: str = None, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        original_levelname = record.levelname
        color = self.COLORS.get(record.levelname, '')
        record.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


FILE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(filename)s:%(lineno)d - %(message)s"
)

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


def default_log_dir() -> Path:
    """Directory holding the rotating log file."""
    return default_home() / 'logs'


class SyncAILogger:
    """Thin wrapper around a stdlib logger with SyncAI handlers attached."""

    def __init__(self, name: str = 'syncai'):
        self.name = name
        self.logger = logging.getLogger(name)

        # Child loggers propagate to the root 'syncai' logger
        if name != 'syncai':
            return

        self.logger.setLevel(logging.INFO)
        if self.logger.handlers:
            return

        self._setup_handlers()

    def _setup_handlers(self, plain: bool = False, log_dir: Optional[Path] = None):
        """Attach console and file handlers."""
        if plain:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(
                ColoredFormatter("[%(levelname)s] %(name)s: %(message)s",
                                 use_colors=sys.stderr.isatty())
            )
        else:
            console_handler = RichHandler(
                console=Console(stderr=True),
                show_time=False,
                show_path=False,
                rich_tracebacks=True
            )
            console_handler.setFormatter(logging.Formatter("%(message)s"))

        console_handler.setLevel(logging.INFO)
        self.logger.addHandler(console_handler)

        self._setup_file_handler(log_dir)

    def _setup_file_handler(self, log_dir: Optional[Path] = None):
        """Attach the rotating file handler."""
        try:
            log_dir = log_dir or default_log_dir()
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_dir / 'syncai.log',
                maxBytes=5 * 1024 * 1024,  # 5MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
            file_handler.setLevel(logging.DEBUG)
            self.logger.addHandler(file_handler)

        except OSError as e:
            self.logger.warning(f"Could not setup file logging: {e}")

    def reset_handlers(self, plain: bool = False, log_dir: Optional[Path] = None):
        """Replace the attached handlers, e.g. after the home directory changed."""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        self._setup_handlers(plain=plain, log_dir=log_dir)

    def set_level(self, level: str):
        """Set the logging level for the logger and its console handlers."""
        log_level = LEVELS.get(level.upper(), logging.INFO)
        self.logger.setLevel(log_level)

        for handler in self.logger.handlers:
            if not isinstance(handler, logging.handlers.RotatingFileHandler):
                handler.setLevel(log_level)

    def debug(self, message: str, *args, **kwargs):
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self.logger.error(message, *args, **kwargs)

    def critical(self, message: str, *args, **kwargs):
        self.logger.critical(message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs):
        """Log exception with traceback."""
        self.logger.exception(message, *args, **kwargs)


_loggers: Dict[str, SyncAILogger] = {}


def get_logger(name: str = 'syncai') -> SyncAILogger:
    """Get or create a logger instance.

    Module loggers are named under the ``syncai`` namespace so records
    propagate to the handlers configured on the root ``syncai`` logger.
    """
    if name != 'syncai' and 'syncai' not in _loggers:
        get_logger('syncai')
    if name not in _loggers:
        _loggers[name] = SyncAILogger(name)
    return _loggers[name]


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[Path] = None,
    verbose: bool = False,
    plain: bool = False,
    home: Optional[Path] = None
):
    """Setup logging configuration for a CLI invocation."""
    if verbose:
        level = 'DEBUG'

    logger = get_logger()
    if plain or home is not None:
        logger.reset_handlers(plain=plain, log_dir=Path(home) / 'logs' if home else None)
    logger.set_level(level)

    if log_file:
        try:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
            logger.logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

        except OSError as e:
            logger.warning(f"Could not setup custom log file {log_file}: {e}")
