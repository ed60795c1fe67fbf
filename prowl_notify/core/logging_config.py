"""
Logging configuration for prowl_notify.

Provides:
- JSON formatted output for log shippers (python-json-logger)
- A readable console format for interactive use
- A filter that flattens line breaks in caller supplied text
- The default standard-error sink used by ProwlClient.log()
"""
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional
from pythonjsonlogger.json import JsonFormatter

from prowl_notify.core.config import settings

# Logger name of the default sink for log() / log_sync()
DEFAULT_SINK_NAME = "prowl_notify.log"

_LINE_BREAKS = re.compile(r'\r\n|\r|\n')


def _flatten(value):
    if isinstance(value, str):
        return _LINE_BREAKS.sub(' ', value)
    return value


class SanitizingFilter(logging.Filter):
    """
    Keep every record on a single line.

    Events and descriptions come from callers and are logged verbatim by
    log() and log_sync(); an embedded newline would let them forge
    additional log lines.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = _flatten(record.msg)
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(_flatten(arg) for arg in record.args)
        return True


class CustomJsonFormatter(JsonFormatter):
    """
    JSON formatter adding timestamp, level, module and logger name.

    Fields passed through ``extra`` (operation, remaining, code, ...) are
    emitted next to them:
    {
        "timestamp": "2025-11-23T10:30:00.000000+00:00",
        "level": "INFO",
        "message": "Prowl message sent",
        "module": "client",
        "logger": "prowl_notify.client",
        "priority": 0,
        "remaining": 992
    }
    """

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault('timestamp', None)
        if not log_record['timestamp']:
            log_record['timestamp'] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()

        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['logger'] = record.name
        log_record.setdefault('message', record.getMessage())


def setup_logging(
    log_level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure the root logger for applications and the command line tool.

    The library itself never calls this; it only logs through module loggers.

    Args:
        log_level: Override log level (default from settings.LOG_LEVEL)
        json_format: Emit JSON lines (default from settings.LOG_JSON)

    Returns:
        Root logger
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    use_json = settings.LOG_JSON if json_format is None else json_format

    if use_json:
        formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SanitizingFilter())
    root_logger.addHandler(console_handler)

    # Suppress noisy third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_default_log_sink() -> logging.Logger:
    """
    Get the logger ProwlClient writes to when no logger is configured.

    Writes INFO and above to standard error with a timestamp prefix. The
    handler is attached once and recognized by its name, so handlers added
    by others (e.g. test log capture) do not stop it from being attached.
    Propagation is disabled so lines are not duplicated when the
    application also configures the root logger.

    Returns:
        The prowl_notify.log logger
    """
    sink = logging.getLogger(DEFAULT_SINK_NAME)
    if not any(h.name == DEFAULT_SINK_NAME for h in sink.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(DEFAULT_SINK_NAME)
        handler.setFormatter(logging.Formatter('%(asctime)s %(message)s'))
        handler.addFilter(SanitizingFilter())
        sink.addHandler(handler)
        sink.setLevel(logging.INFO)
        sink.propagate = False
    return sink


def mask_key(key: str) -> str:
    """Shorten an api key, provider key or token for log output."""
    if not key:
        return "-"
    return key[:8] + "..."
