"""
Centralized logging utilities for batch_transcode

Provides consistent logging patterns with configurable debug levels:
- [INFO] for general information
- [WARN] for warnings
- [ERROR] for errors
- [DEBUG] for debug information (only when debug mode is enabled)

Every line is printed to the console and, when a log file is configured,
appended to it as ``<timestamp> [<LEVEL>] <message>``. File writes hold a
cross-process lock keyed by the log file so several runs can share one log.

Usage:
    from batch_transcode.utils.logging import get_logger, configure_log_file

    configure_log_file(Path("transcode.log"))
    logger = get_logger("pipeline")
    logger.info("Starting batch")
    logger.debug("Only shown in debug mode")
"""

import os
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from tqdm import tqdm

from .file_lock import NamedFileLock

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Global logging configuration
_DEBUG_ENABLED = False
_QUIET_MODE = False
_LOG_LEVEL = "INFO"
_TIMESTAMPS_ENABLED = True
_LOG_FILE: Optional[Path] = None
_FILE_SINK_BROKEN = False


class LogLevel(Enum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3


def _init_debug_mode():
    global _DEBUG_ENABLED
    if os.getenv('DEBUG', '').lower() in ('1', 'true', 'yes'):
        _DEBUG_ENABLED = True

_init_debug_mode()


def set_debug_mode(enabled: bool):
    """Enable or disable debug mode globally"""
    global _DEBUG_ENABLED
    _DEBUG_ENABLED = enabled


def set_quiet_mode(enabled: bool):
    """Enable or disable quiet mode (suppress INFO and DEBUG on the console)"""
    global _QUIET_MODE
    _QUIET_MODE = enabled


def set_log_level(level: str):
    """Set the global log level: DEBUG, INFO, WARN, ERROR"""
    global _LOG_LEVEL
    _LOG_LEVEL = level.upper()


def set_timestamps_enabled(enabled: bool):
    """Toggle timestamps on console lines (the log file always has them)."""
    global _TIMESTAMPS_ENABLED
    _TIMESTAMPS_ENABLED = enabled


def get_debug_mode() -> bool:
    """Get current debug mode setting"""
    return _DEBUG_ENABLED


def configure_log_file(path: Optional[Path]):
    """Direct log lines to ``path`` in addition to the console (None disables)."""
    global _LOG_FILE, _FILE_SINK_BROKEN
    _LOG_FILE = Path(path) if path is not None else None
    _FILE_SINK_BROKEN = False
    if _LOG_FILE is not None:
        _LOG_FILE.parent.mkdir(parents=True, exist_ok=True)


def get_log_file() -> Optional[Path]:
    return _LOG_FILE


def format_log_line(level: str, message: str, when: Optional[datetime] = None) -> str:
    """Render one log line in the ``<timestamp> [<LEVEL>] <message>`` format."""
    when = when or datetime.now()
    return f"{when.strftime(TIMESTAMP_FORMAT)} [{level}] {message}"


def append_to_log_file(log_file: Path, line: str):
    """Append a single line to ``log_file`` while holding its named lock."""
    with NamedFileLock(log_file):
        with open(log_file, 'a', encoding='utf-8') as f:
            f.write(line + "\n")


class Logger:
    """Centralized logger with consistent formatting and configurable output"""

    def __init__(self, module_name: str = ""):
        self.module_name = module_name

    def _should_log(self, level: LogLevel) -> bool:
        if level == LogLevel.DEBUG and not _DEBUG_ENABLED:
            return False

        level_hierarchy = {
            "DEBUG": LogLevel.DEBUG,
            "INFO": LogLevel.INFO,
            "WARN": LogLevel.WARN,
            "ERROR": LogLevel.ERROR
        }
        current_level = level_hierarchy.get(_LOG_LEVEL, LogLevel.INFO)
        if _DEBUG_ENABLED:
            current_level = LogLevel.DEBUG
        return level.value >= current_level.value

    def _log(self, level: LogLevel, message: str):
        if not self._should_log(level):
            return

        now = datetime.now()
        if not (_QUIET_MODE and level in (LogLevel.DEBUG, LogLevel.INFO)):
            if _TIMESTAMPS_ENABLED:
                console_line = format_log_line(level.name, message, now)
            else:
                console_line = f"[{level.name}] {message}"
            tqdm.write(console_line, file=sys.stderr if level == LogLevel.ERROR else sys.stdout)

        if _LOG_FILE is not None:
            self._write_file(format_log_line(level.name, message, now))

    def _write_file(self, line: str):
        global _FILE_SINK_BROKEN
        try:
            append_to_log_file(_LOG_FILE, line)
        except OSError as e:
            # Report the broken sink once; console logging carries on.
            if not _FILE_SINK_BROKEN:
                _FILE_SINK_BROKEN = True
                print(f"[ERROR] Could not write to log file {_LOG_FILE}: {e}", file=sys.stderr)

    def debug(self, message: str):
        """Log debug message (only if debug mode enabled)"""
        self._log(LogLevel.DEBUG, message)

    def info(self, message: str):
        self._log(LogLevel.INFO, message)

    def warn(self, message: str):
        self._log(LogLevel.WARN, message)

    def error(self, message: str):
        self._log(LogLevel.ERROR, message)

    def cleanup(self, message: str):
        """Cleanup operations"""
        self.info(f"[CLEANUP] {message}")

    def discovery(self, message: str):
        """File discovery messages"""
        self.info(f"[DISCOVERY] {message}")

    def encoder(self, message: str):
        """Lines forwarded from the external encoder"""
        self.info(f"[ENCODER] {message}")


_LOGGERS: Dict[str, Logger] = {}


def get_logger(module_name: str = "") -> Logger:
    """Get a logger instance for a module"""
    if module_name not in _LOGGERS:
        _LOGGERS[module_name] = Logger(module_name)
    return _LOGGERS[module_name]


def format_duration(seconds: float) -> str:
    """Format duration in seconds to a human-readable string"""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds/60:.1f}m"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def format_size(bytes_size: int) -> str:
    """Convert bytes to human readable format ("500 B", "1.50 KB", "2.00 GB")."""
    negative = bytes_size < 0
    size = float(abs(bytes_size))
    units = ['B', 'KB', 'MB', 'GB', 'TB', 'PB']
    unit_index = 0
    while unit_index < len(units) - 1 and size >= 1024.0:
        size /= 1024.0
        unit_index += 1
    unit = units[unit_index]
    if unit == 'B':
        formatted = f"{int(size)} {unit}"
    else:
        formatted = f"{size:.2f} {unit}"
    return f"-{formatted}" if negative else formatted


def create_progress_bar(iterable=None, total: Optional[int] = None, desc: str = "",
                        unit: str = "it", disable: bool = False) -> tqdm:
    """Create a progress bar with consistent styling"""
    return tqdm(iterable, total=total, desc=desc, unit=unit, disable=disable)
