"""Logging configuration.

Provides JSON-formatted logging for the validator. Library modules only
create loggers under the "addonval" namespace and attach run context
(test case, prefix, offering, config ID) through `extra=log_extra(...)`;
applications call configure_logging() once at startup.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Dict, Optional

# Record attributes copied into the JSON payload when present
CONTEXT_FIELDS = ("test_case", "prefix", "offering", "config_id")


def log_extra(
    test_case: Optional[str] = None,
    prefix: Optional[str] = None,
    offering: Optional[str] = None,
    config_id: Optional[str] = None,
) -> Dict[str, str]:
    """Build the `extra` mapping for a log call, dropping empty fields."""
    values = {
        "test_case": test_case,
        "prefix": prefix,
        "offering": offering,
        "config_id": config_id,
    }
    return {k: v for k, v in values.items() if v}


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in CONTEXT_FIELDS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    log_file: str = None,
    log_level: str = None,
):
    """Configure logging with JSON formatter.

    Args:
        log_file: Path to log file. Defaults to ADDONVAL_LOG_FILE env var or
            'addonval.log'. An empty env value disables the file handler.
        log_level: Log level. Defaults to ADDONVAL_LOG_LEVEL env var or 'INFO'.
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter())
    handlers = [console_handler]

    # File handler (always append)
    log_file = log_file if log_file is not None else os.getenv("ADDONVAL_LOG_FILE", "addonval.log")
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setFormatter(JsonFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    log_level = (log_level or os.getenv("ADDONVAL_LOG_LEVEL", "INFO")).upper()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.handlers = handlers
