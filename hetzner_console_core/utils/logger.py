"""
Logging setup for the console core.

This module provides:
1. ContextAwareLogger, which renders extra attributes into the message
   (pipe-delimited) while keeping them on the record
2. IdentityContextFilter, which stamps owner and user ids onto records
3. mask_token, so API tokens only ever reach the logs as length and prefix
"""

import logging
import sys
from typing import Any, Dict, Optional, Union

from ..config import get_config

_console_logger = None


class ContextAwareLogger:
    """
    Logger wrapper that formats extra attributes in message while preserving them.

    This ensures extras appear in console output even when the host process
    overrides the formatters.
    """

    def __init__(self, logger):
        """Initialize with an existing logger."""
        self.logger = logger

    def _log_with_formatted_extra(self, level, msg, **kwargs):
        """
        Log with extra data formatted into the message.

        Args:
            level: Logging level method to use
            msg: Log message
            **kwargs: Additional arguments including 'extra' and 'exc_info'
        """
        extra = kwargs.pop("extra", {})
        exc_info = kwargs.pop("exc_info", None)

        if extra:
            extra_str = " | ".join([f"{k}={v}" for k, v in extra.items()])
            full_msg = f"{msg} | {extra_str}"
        else:
            full_msg = msg

        log_method = getattr(self.logger, level)
        if exc_info:
            log_method(full_msg, extra=_safe_extra(extra), exc_info=exc_info)
        else:
            log_method(full_msg, extra=_safe_extra(extra))

    def set_level(self, level):
        """Set the logging level of the underlying logger."""
        self.logger.setLevel(level)

    def info(self, msg, **kwargs):
        """Log at INFO level with formatted extra."""
        self._log_with_formatted_extra("info", msg, **kwargs)

    def error(self, msg, **kwargs):
        """Log at ERROR level with formatted extra."""
        self._log_with_formatted_extra("error", msg, **kwargs)

    def warning(self, msg, **kwargs):
        """Log at WARNING level with formatted extra."""
        self._log_with_formatted_extra("warning", msg, **kwargs)

    def debug(self, msg, **kwargs):
        """Log at DEBUG level with formatted extra."""
        self._log_with_formatted_extra("debug", msg, **kwargs)

    def exception(self, msg, **kwargs):
        """Log exception with formatted extra."""
        self._log_with_formatted_extra("exception", msg, **kwargs)


# LogRecord attributes that an ``extra`` key must not overwrite
_RESERVED_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


def _safe_extra(extra: Dict[str, Any]) -> Dict[str, Any]:
    return {
        (f"_{key}" if key in _RESERVED_RECORD_KEYS else key): value
        for key, value in extra.items()
    }


class IdentityContextFilter(logging.Filter):
    """
    Logging filter that adds owner and user ids to log records.
    """

    def filter(self, record):
        """
        Add owner_id and user_id to the record if an identity is in scope.

        Args:
            record: LogRecord to modify

        Returns:
            True to include the record in the log output
        """
        # Lazy import to avoid circular dependency
        from ..context.identity import IdentityContext

        identity = IdentityContext.get_current_identity()
        if identity is not None:
            record.owner_id = identity.owner_id
            record.user_id = identity.user_id

        return True


def mask_token(token: Optional[str]) -> Dict[str, Any]:
    """
    Describe a secret without revealing it.

    Args:
        token: API token or None

    Returns:
        Dictionary with the token length and a short prefix
    """
    if not token:
        return {"token_length": 0, "token_prefix": None}
    return {"token_length": len(token), "token_prefix": f"{token[:4]}..."}


def configure_logging(
    name: str = "hetzner_console",
    log_level: Optional[Union[int, str]] = None,
) -> "ContextAwareLogger":
    """
    Configure console logging for the console core.

    Args:
        name: Logger name
        log_level: Logging level (default: from config)

    Returns:
        The configured logger wrapped with ContextAwareLogger
    """
    global _console_logger

    app_config = get_config()

    if log_level is None:
        log_level = app_config.logging.level

    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(app_config.logging.format))
    console_handler.addFilter(IdentityContextFilter())

    logger.addHandler(console_handler)

    wrapped_logger = ContextAwareLogger(logger)
    wrapped_logger.info("Logger configured", extra={"logger_name": name})

    _console_logger = wrapped_logger
    return wrapped_logger


def reset_logging() -> None:
    """Forget the configured logger so get_logger falls back to the root logger."""
    global _console_logger
    _console_logger = None


def get_logger(
    log_level: Optional[Union[int, str]] = None,
) -> "ContextAwareLogger":
    """
    Get the console logger.

    Args:
        log_level: Optional log level to set

    Returns:
        Logger instance
    """
    if _console_logger is not None:
        return _console_logger

    # Root logger as fallback
    logger = logging.getLogger()

    if log_level is None:
        app_config = get_config()
        log_level = app_config.logging.level

    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    return ContextAwareLogger(logger)
