"""Centralized logging configuration for the PPE image record store."""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

LOGGER_NAMESPACE = "ppe_image_store"


class StructuredFormatter(logging.Formatter):
    """Custom formatter that adds structured information to log records."""

    def __init__(self, include_context: bool = True):
        self.include_context = include_context
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured information."""
        base_format = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"

        if self.include_context and hasattr(record, 'context'):
            context_str = " | ".join([f"{k}={v}" for k, v in record.context.items()])
            base_format += f" | Context: {context_str}"

        if record.levelno >= logging.ERROR and record.exc_info:
            base_format += " | %(pathname)s:%(lineno)d"

        formatter = logging.Formatter(base_format)
        return formatter.format(record)


class ContextFilter(logging.Filter):
    """Filter that adds component and process context to log records."""

    def __init__(self, component_name: Optional[str] = None):
        super().__init__()
        self.component_name = component_name
        self.process_id = os.getpid()

    def filter(self, record: logging.LogRecord) -> bool:
        record.process_id = self.process_id
        if self.component_name:
            record.component = self.component_name
        return True


class LoggingManager:
    """Centralized logging management for the image store.

    Creating a manager only sets up component loggers; console and rotating
    file handlers are installed by ``configure()``.
    """

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = Path(log_dir) if log_dir else None

        self.log_level = logging.INFO
        self.max_log_size = 10 * 1024 * 1024  # 10MB
        self.backup_count = 5

        self.component_loggers: Dict[str, logging.Logger] = {}
        self._handlers: list = []

    @property
    def main_log_file(self) -> Optional[Path]:
        return self.log_dir / "image_store.log" if self.log_dir else None

    @property
    def error_log_file(self) -> Optional[Path]:
        return self.log_dir / "errors.log" if self.log_dir else None

    @property
    def performance_log_file(self) -> Optional[Path]:
        return self.log_dir / "performance.log" if self.log_dir else None

    def configure(self) -> None:
        """Attach console and (when a log directory is set) rotating file handlers."""
        package_logger = logging.getLogger(LOGGER_NAMESPACE)
        package_logger.setLevel(self.log_level)
        self._remove_handlers(package_logger)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(StructuredFormatter(include_context=False))
        self._add_handler(package_logger, console_handler)

        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)

            main_file_handler = logging.handlers.RotatingFileHandler(
                self.main_log_file,
                maxBytes=self.max_log_size,
                backupCount=self.backup_count
            )
            main_file_handler.setLevel(logging.DEBUG)
            main_file_handler.setFormatter(StructuredFormatter(include_context=True))
            self._add_handler(package_logger, main_file_handler)

            error_file_handler = logging.handlers.RotatingFileHandler(
                self.error_log_file,
                maxBytes=self.max_log_size,
                backupCount=self.backup_count
            )
            error_file_handler.setLevel(logging.ERROR)
            error_file_handler.setFormatter(StructuredFormatter(include_context=True))
            self._add_handler(package_logger, error_file_handler)

        package_logger.info("Logging system initialized")

    def _add_handler(self, logger: logging.Logger, handler: logging.Handler) -> None:
        logger.addHandler(handler)
        self._handlers.append((logger, handler))

    def _remove_handlers(self, logger: logging.Logger) -> None:
        for owner, handler in list(self._handlers):
            if owner is logger:
                logger.removeHandler(handler)
                handler.close()
                self._handlers.remove((owner, handler))

    def shutdown(self) -> None:
        """Detach and close every handler this manager installed."""
        for owner, handler in self._handlers:
            owner.removeHandler(handler)
            handler.close()
        self._handlers.clear()

    def get_component_logger(self, component_name: str,
                             log_level: Optional[int] = None) -> logging.Logger:
        """Get or create a logger for a specific component."""
        if component_name in self.component_loggers:
            return self.component_loggers[component_name]

        logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{component_name}")

        if log_level:
            logger.setLevel(log_level)

        logger.addFilter(ContextFilter(component_name))

        self.component_loggers[component_name] = logger
        return logger

    def get_performance_logger(self) -> logging.Logger:
        """Get logger specifically for performance metrics."""
        logger_name = f"{LOGGER_NAMESPACE}.performance"

        if logger_name not in self.component_loggers:
            logger = logging.getLogger(logger_name)

            if self.log_dir:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                perf_handler = logging.handlers.RotatingFileHandler(
                    self.performance_log_file,
                    maxBytes=self.max_log_size,
                    backupCount=self.backup_count
                )
                perf_handler.setLevel(logging.INFO)
                perf_handler.setFormatter(logging.Formatter("%(asctime)s | %(message)s"))
                self._add_handler(logger, perf_handler)

            self.component_loggers[logger_name] = logger

        return self.component_loggers[logger_name]

    def log_with_context(self, logger: logging.Logger, level: int,
                         message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Log message with additional context information."""
        if context:
            logger.log(level, message, extra={"context": context})
        else:
            logger.log(level, message)

    def set_log_level(self, level: int) -> None:
        """Set the log level for the package and every component logger."""
        self.log_level = level
        logging.getLogger(LOGGER_NAMESPACE).setLevel(level)
        for logger in self.component_loggers.values():
            logger.setLevel(level)

    def get_log_stats(self) -> Dict[str, Any]:
        """Get logging statistics."""
        stats = {
            "log_directory": str(self.log_dir) if self.log_dir else None,
            "log_files": {},
            "active_loggers": list(self.component_loggers.keys()),
            "log_level": logging.getLevelName(self.log_level)
        }

        if self.log_dir:
            for log_file in [self.main_log_file, self.error_log_file, self.performance_log_file]:
                if log_file.exists():
                    stats["log_files"][log_file.name] = {
                        "size_mb": log_file.stat().st_size / (1024 * 1024),
                        "modified": datetime.fromtimestamp(log_file.stat().st_mtime).isoformat()
                    }

        return stats


# Global logging manager instance
logging_manager = LoggingManager()


def get_logger(component_name: str) -> logging.Logger:
    """Convenience function to get a component logger."""
    return logging_manager.get_component_logger(component_name)


def log_performance(message: str, metrics: Optional[Dict[str, Any]] = None) -> None:
    """Convenience function to log performance metrics."""
    perf_logger = logging_manager.get_performance_logger()

    if metrics:
        metric_str = " | ".join([f"{k}={v}" for k, v in metrics.items()])
        message = f"{message} | {metric_str}"

    perf_logger.info(message)


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> LoggingManager:
    """Setup centralized logging system."""
    global logging_manager

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging_manager.shutdown()
    new_manager = LoggingManager(log_dir)
    # Component loggers already handed out stay registered with the new manager
    new_manager.component_loggers.update(logging_manager.component_loggers)
    new_manager.component_loggers.pop(f"{LOGGER_NAMESPACE}.performance", None)
    new_manager.log_level = numeric_level
    new_manager.configure()
    new_manager.set_log_level(numeric_level)

    logging_manager = new_manager
    return logging_manager
