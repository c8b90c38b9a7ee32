"""
Logger Service Module
Root logging configuration for the advisor: colored console output, rotating
session/error logs and a JSON performance log for Oracle round-trips
"""

import json
import logging
import os
import sys
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import colorlog

CONSOLE_FORMAT = "%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

# LogRecord attributes that are not "extra" fields
_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class LoggerService:
    """
    Configures the root logger once per process:
    - Console handler (colorlog)
    - advisor.log: everything at file_level
    - errors.log: ERROR and above
    - performance.log: JSON lines from log_performance()
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = {**self._default_config(), **(config or {})}
        self.loggers: dict[str, logging.Logger] = {}
        self.handlers: list[logging.Handler] = []

        self.log_dir = Path(self.config["log_dir"])
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            if not os.access(self.log_dir, os.W_OK):
                raise PermissionError(f"Log directory not writable: {self.log_dir}")
        except OSError:
            self.log_dir = Path("./logs")
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_root_logger()

    def _default_config(self) -> dict[str, Any]:
        return {
            "log_dir": "./logs",
            "console_level": "INFO",
            "file_level": "DEBUG",
            "max_bytes": 5 * 1024 * 1024,  # 5MB
            "backup_count": 3,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "date_format": "%Y-%m-%d %H:%M:%S",
            "json_logs": False,
            "performance_logs": True,
        }

    def _setup_root_logger(self):
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)  # filter at handler level
        root_logger.handlers = []

        self._add(root_logger, self._create_console_handler())
        self._add(root_logger, self._create_file_handler("advisor.log"))
        self._add(root_logger, self._create_file_handler("errors.log", level=logging.ERROR))

        if self.config.get("performance_logs"):
            perf_logger = logging.getLogger("performance")
            perf_logger.propagate = False
            self._add(perf_logger, self._create_performance_handler())

    def _add(self, logger: logging.Logger, handler: logging.Handler) -> None:
        logger.addHandler(handler)
        self.handlers.append(handler)

    def _create_console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(_level(self.config["console_level"]))
        handler.setFormatter(
            colorlog.ColoredFormatter(
                CONSOLE_FORMAT,
                datefmt=self.config["date_format"],
                log_colors=LOG_COLORS,
            )
        )
        return handler

    def _create_file_handler(self, filename: str, level: int | None = None) -> logging.Handler:
        try:
            handler: logging.Handler = RotatingFileHandler(
                self.log_dir / filename,
                maxBytes=self.config["max_bytes"],
                backupCount=self.config["backup_count"],
                encoding="utf-8",
            )
        except OSError:
            # read-only filesystems (CI, sandboxes)
            handler = logging.StreamHandler(sys.stderr)

        handler.setLevel(level or _level(self.config["file_level"]))
        if self.config.get("json_logs"):
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(
                logging.Formatter(self.config["format"], datefmt=self.config["date_format"])
            )
        return handler

    def _create_performance_handler(self) -> logging.Handler:
        try:
            handler: logging.Handler = RotatingFileHandler(
                self.log_dir / "performance.log",
                maxBytes=self.config["max_bytes"],
                backupCount=self.config["backup_count"],
                encoding="utf-8",
            )
        except OSError:
            handler = logging.StreamHandler(sys.stderr)

        handler.setLevel(logging.INFO)
        handler.setFormatter(JsonFormatter())
        return handler

    def get_logger(self, name: str) -> logging.Logger:
        if name not in self.loggers:
            self.loggers[name] = logging.getLogger(name)
        return self.loggers[name]

    def log_performance(self, operation: str, duration: float, metadata: dict | None = None):
        perf_data = {
            "operation": operation,
            "duration_ms": round(duration * 1000, 3),
            "timestamp": datetime.now().isoformat(),
        }
        if metadata:
            perf_data.update(metadata)
        self.get_logger("performance").info(json.dumps(perf_data))

    def set_console_level(self, level: str):
        for handler in self.handlers:
            if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stdout:
                handler.setLevel(_level(level))

    def cleanup(self):
        for handler in self.handlers:
            for logger in [logging.getLogger(), logging.getLogger("performance")]:
                logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()
        self.loggers.clear()


def _level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class PerformanceLogger:
    """
    Times a block and logs the outcome (sync or async).

    Usage:
        async with PerformanceLogger(logger, "oracle_query"):
            response = await oracle.query(prompt, history)
    """

    def __init__(self, logger: logging.Logger, operation: str, metadata: dict | None = None):
        self.logger = logger
        self.operation = operation
        self.metadata = metadata
        self.start_time: float | None = None
        self.duration: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time
        if exc_type:
            self.logger.error(
                f"Operation '{self.operation}' failed after {self.duration:.3f}s: {exc_val}"
            )
        else:
            self.logger.info(f"Operation '{self.operation}' completed in {self.duration:.3f}s")
        log_performance(
            self.operation,
            self.duration,
            {**(self.metadata or {}), "success": exc_type is None},
        )
        return False

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)


# Global logger service instance
_logger_service: LoggerService | None = None


def setup_logging(config: dict | None = None) -> logging.Logger:
    """
    Configure logging once and return the root logger

    Settings come from config.LOGGING / config.FILES, overridden by `config`.
    """
    global _logger_service

    if _logger_service is not None:
        if config and "console_level" in config:
            _logger_service.set_console_level(config["console_level"])
        return logging.getLogger()

    from config import config as app_config

    logging_settings = app_config.section("logging")
    log_config = {
        "log_dir": str(app_config.FILES.get("log_dir", "./logs")),
        "console_level": logging_settings.get("level", "INFO"),
        "file_level": logging_settings.get("file_level", "DEBUG"),
        "max_bytes": logging_settings.get("max_bytes", 5 * 1024 * 1024),
        "backup_count": logging_settings.get("backup_count", 3),
        "format": logging_settings.get("format"),
        "date_format": logging_settings.get("date_format"),
        "json_logs": logging_settings.get("json_logs", False),
        "performance_logs": logging_settings.get("performance_logs", True),
    }
    log_config = {k: v for k, v in log_config.items() if v is not None}
    if config:
        log_config.update(config)

    _logger_service = LoggerService(log_config)
    return logging.getLogger()


def get_logger(name: str) -> logging.Logger:
    """Get a named logger (configures logging on first use)"""
    if _logger_service is None:
        setup_logging()
    return _logger_service.get_logger(name)


def log_performance(operation: str, duration: float, metadata: dict | None = None):
    """Log performance metrics (no-op until logging is configured)"""
    if _logger_service:
        _logger_service.log_performance(operation, duration, metadata)


def cleanup_logging():
    global _logger_service

    if _logger_service:
        _logger_service.cleanup()
        _logger_service = None
