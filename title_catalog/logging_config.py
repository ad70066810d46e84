#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Logging setup for Title Catalog.

Features:
- Level-specific console formats with optional colours
- Structured JSON output (TITLE_CATALOG_LOG_JSON=1)
- Rotating file logs
- Timing helpers for slow catalog operations
"""

import logging
import logging.handlers
import os
import sys
import time
import threading
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any
from functools import lru_cache
from collections import defaultdict

ROOT_LOGGER_NAME = "title_catalog"
SLOW_OPERATION_SECONDS = 1.0

# =====================================================================================================
# Formatters
# =====================================================================================================

class FastFormatter(logging.Formatter):
    """Formatter with one pre-built format per level."""

    def __init__(self, enable_colors: bool = False):
        super().__init__()
        self.enable_colors = enable_colors

        self._formats = {
            logging.ERROR: "[{asctime}] ERROR   [{name}] {message}",
            logging.WARNING: "[{asctime}] WARNING [{name}] {message}",
            logging.INFO: "[{asctime}] INFO    {message}",
            logging.DEBUG: "[{asctime}] DEBUG   {name}:{lineno} - {message}"
        }

        self.colors = {
            'ERROR': '\033[91m',
            'WARNING': '\033[93m',
            'INFO': '\033[92m',
            'DEBUG': '\033[94m',
            'RESET': '\033[0m'
        } if enable_colors else {}

    def format(self, record):
        fmt_string = self._formats.get(record.levelno, self._formats[logging.INFO])
        formatter = logging.Formatter(fmt_string, style='{', datefmt='%H:%M:%S')
        text = formatter.format(record)
        color = self.colors.get(record.levelname)
        if color:
            return f"{color}{text}{self.colors['RESET']}"
        return text


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter (optional)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "thread": record.threadName,
            "process": record.process,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

# =====================================================================================================
# Performance logger
# =====================================================================================================

class SimplePerformanceLogger:
    """Accumulates operation timings and warns about slow ones."""

    def __init__(self, name: str = "performance"):
        self.logger = get_logger(name)
        self.metrics = defaultdict(float)
        self.counts = defaultdict(int)
        self._lock = threading.Lock()

    def log_timing(self, operation: str, duration: float):
        with self._lock:
            self.metrics[operation] += duration
            self.counts[operation] += 1

        if duration > SLOW_OPERATION_SECONDS:
            self.logger.warning("SLOW: %s took %.2fs", operation, duration)
        else:
            self.logger.debug("%s took %.4fs", operation, duration)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = {}
            for operation in self.metrics:
                count = self.counts[operation]
                total = self.metrics[operation]
                stats[operation] = {
                    'count': count,
                    'total_time': total,
                    'avg_time': total / count if count > 0 else 0
                }
            return stats

    def reset(self):
        with self._lock:
            self.metrics.clear()
            self.counts.clear()

# =====================================================================================================
# Main Setup Function
# =====================================================================================================

def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_file_logging: bool = True,
    enable_console_logging: bool = True,
    max_log_size: str = "10MB",
    backup_count: int = 3,
    structured_json: Optional[bool] = None
) -> Dict[str, Any]:
    """
    Configure the root logger for Title Catalog.

    Returns a dict with the installed handlers and the log directory.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_dir_path = Path(log_dir) if log_dir else Path("logs")

    size_bytes = _parse_size_string(max_log_size)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers = {}
    use_json = structured_json if structured_json is not None else _env_bool("TITLE_CATALOG_LOG_JSON")

    if enable_console_logging:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)

        enable_colors = (hasattr(sys.stderr, 'isatty') and
                         sys.stderr.isatty() and
                         os.environ.get('TERM') != 'dumb')

        console_handler.setFormatter(JsonFormatter() if use_json else FastFormatter(enable_colors=enable_colors))
        root_logger.addHandler(console_handler)
        handlers['console'] = console_handler

    if enable_file_logging:
        log_dir_path.mkdir(parents=True, exist_ok=True)
        main_handler = logging.handlers.RotatingFileHandler(
            str(log_dir_path / "title_catalog.log"),
            maxBytes=size_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        main_handler.setLevel(numeric_level)
        main_handler.setFormatter(JsonFormatter() if use_json else FastFormatter())
        root_logger.addHandler(main_handler)
        handlers['main_file'] = main_handler

    logging.getLogger(ROOT_LOGGER_NAME).debug(
        "Logging initialized (level=%s, file=%s, json=%s)", log_level, enable_file_logging, use_json
    )

    return {
        'handlers': handlers,
        'log_dir': log_dir_path
    }

# =====================================================================================================
# Utility functions
# =====================================================================================================

def _parse_size_string(size_str: str) -> int:
    """Parse size string into bytes."""
    size_str = size_str.upper().strip()

    # Longest suffixes first so "10MB" is not read as "10M" + "B".
    multipliers = (
        ('GB', 1024 ** 3),
        ('MB', 1024 ** 2),
        ('KB', 1024),
        ('B', 1),
    )

    for suffix, multiplier in multipliers:
        if size_str.endswith(suffix):
            try:
                number = float(size_str[:-len(suffix)].strip())
                return int(number * multiplier)
            except ValueError:
                continue

    try:
        return int(float(size_str))
    except ValueError:
        pass

    return 10 * 1024 * 1024


@lru_cache(maxsize=32)
def get_logger(name: str) -> logging.Logger:
    """Get cached logger instance under the package namespace."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def cleanup_logging():
    """Close and detach all root handlers."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    get_logger.cache_clear()

# =====================================================================================================
# Performance monitoring
# =====================================================================================================

_performance_logger = SimplePerformanceLogger()


class LoggingTimer:
    """Simple timing context manager."""

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self.start_time = None
        self.duration = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            self.duration = time.perf_counter() - self.start_time
            _performance_logger.log_timing(self.operation_name, self.duration)
