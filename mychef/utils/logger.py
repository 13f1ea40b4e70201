"""Logging infrastructure for the MyChef resolution engine.

Provides centralized logging with configurable format (text/JSON) and level.
Configured via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Records may carry `session_id` and `strategy` extras. A session binds its id
once with `bind_context` and passes only the per-call strategy:

    log = bind_context(session_id="a1b2c3d4")
    log.info("resolved", extra={"strategy": "no-cuisine"})
"""

import json
import logging
import os
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

# Extra record attributes copied into structured output when present
CONTEXT_FIELDS = ("session_id", "strategy")


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Context extras set on a record, in CONTEXT_FIELDS order."""
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON string with timestamp, level, logger name, message, context extras
            and optional traceback.
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }

        # Include exception traceback if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class RichTextFormatter(logging.Formatter):
    """Formatter that outputs colored text with icons."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "RESET": "\033[0m",       # Reset
    }

    # Icons for each level
    ICONS = {
        "DEBUG": "🔍",
        "INFO": "ℹ️",
        "WARNING": "⚠️",
        "ERROR": "❌",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as colored text.

        Args:
            record: Log record to format.

        Returns:
            Formatted string with color codes, icon and bracketed context extras.
        """
        level = record.levelname
        color = self.COLORS.get(level, self.COLORS["RESET"])
        icon = self.ICONS.get(level, "")
        reset = self.COLORS["RESET"]

        # Format: YYYY-MM-DD HH:MM:SS
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")

        # Context goes after the message as [key=value] pairs
        context = " ".join(f"[{key}={value}]" for key, value in record_context(record).items())
        suffix = f" {context}" if context else ""

        message = f"{color}{icon} {timestamp} {level:<8} {record.name:<20} {record.getMessage()}{suffix}{reset}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps bound context onto every record.

    Per-call `extra` is merged over the bound context, so a call can add a
    strategy without repeating the session id.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> logging.Logger:
    """Create and configure logger instance.

    Args:
        name: Logger name, typically module name.

    Returns:
        Configured logger instance.
    """
    logger_instance = logging.getLogger(name)

    # Return existing logger if already configured
    if logger_instance.handlers:
        return logger_instance

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_type = os.getenv("LOG_TYPE", "text").lower()

    log_level = getattr(logging, log_level_str, logging.INFO)
    logger_instance.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    formatter = JSONFormatter() if log_type == "json" else RichTextFormatter()
    handler.setFormatter(formatter)
    logger_instance.addHandler(handler)

    return logger_instance


def bind_context(base: Optional[logging.Logger] = None, **context: Any) -> ContextAdapter:
    """Adapter over `base` (the package logger by default) carrying fixed context extras."""
    unknown = set(context) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {', '.join(sorted(unknown))}")
    return ContextAdapter(base or logger, context)


# Create module-level logger instance
logger = get_logger("mychef")

# Quiet the HTTP and Gemini client libraries
logging.getLogger("google.genai").setLevel(logging.WARNING)
logging.getLogger("aiohttp").setLevel(logging.WARNING)
