"""
One-time logging setup for applications that use qanalytics.

Library code only ever calls `logging.getLogger(...)`; handlers are installed
here, by the application (see actions/), never on import.
"""

import json
import logging
import sys

from qanalytics.config.settings import get_settings

ROOT_LOGGER_NAME = "qanalytics"


class JsonFormatter(logging.Formatter):
    """
    Render a log record as a single JSON object.

    If the message itself is a JSON object (as produced by LoggingSink), its
    keys are merged in rather than nested as an escaped string.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "logged_at": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
        }
        message = record.getMessage()
        try:
            decoded = json.loads(message)
        except ValueError:
            decoded = None
        if isinstance(decoded, dict):
            payload.update(decoded)
        else:
            payload["message"] = message
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: str | None = None, fmt: str | None = None) -> logging.Logger:
    """
    Install a stderr handler on the `qanalytics` logger.

    Calling this more than once is safe: only the first call installs a handler,
    later calls return the already-configured logger untouched.

    Args:
        level: Logging level name; defaults to settings.log_level.
        fmt: "json" or "text"; defaults to settings.log_format.

    Returns:
        The configured `qanalytics` logger.
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Avoid adding handlers multiple times
    if package_logger.handlers:
        return package_logger

    if level is None or fmt is None:
        settings = get_settings()
        level = level or settings.log_level
        fmt = fmt or settings.log_format

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s")
        )

    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper())
    package_logger.propagate = False
    return package_logger
