"""Logging utilities for mosaicmap."""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, List

from ..configuration.settings import LoggingSettings

PACKAGE_LOGGER = "mosaicmap"


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def setup_logging(settings: LoggingSettings) -> logging.Logger:
    """Configure the ``mosaicmap`` logger hierarchy from settings.

    Handlers are attached to the package logger rather than the root logger so
    that embedding applications keep their own configuration. Calling this
    again replaces the handlers installed by the previous call.

    Args:
        settings: Logging settings configuration

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(_level(settings.level))

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=settings.format_string, datefmt=settings.date_format)
    handlers: List[logging.Handler] = []

    if settings.console_output:
        handlers.append(logging.StreamHandler(sys.stdout))

    if settings.file_output:
        try:
            Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                filename=settings.log_file,
                maxBytes=settings.max_file_size_mb * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding='utf-8'
            ))
        except OSError as e:
            package_logger.error(f"Failed to setup file logging at {settings.log_file}: {e}")

    for handler in handlers:
        handler.setLevel(_level(settings.level))
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    for component, level in settings.component_levels.items():
        logging.getLogger(component).setLevel(_level(level))

    package_logger.debug(f"Logging initialized with {len(handlers)} handler(s)")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class ContextLogger(logging.LoggerAdapter):
    """Logger that prefixes every message with ``key=value`` context.

    Used by the optimizer to tag messages with the run and phase they belong to.
    """

    def __init__(self, logger: logging.Logger, context: Dict[str, Any]):
        super().__init__(logger, dict(context))

    @property
    def context(self) -> Dict[str, Any]:
        return self.extra

    def process(self, msg, kwargs):
        if self.extra:
            context_str = " ".join(f"{k}={v}" for k, v in self.extra.items())
            return f"[{context_str}] {msg}", kwargs
        return msg, kwargs

    def bind(self, **context) -> 'ContextLogger':
        """Return a new logger with additional context."""
        merged = dict(self.extra)
        merged.update(context)
        return ContextLogger(self.logger, merged)


def get_context_logger(name: str, **context) -> ContextLogger:
    """Get a context logger with additional information.

    Args:
        name: Logger name
        **context: Context key-value pairs

    Returns:
        ContextLogger instance
    """
    return ContextLogger(get_logger(name), context)
