"""Logging configuration for docschema."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter for production use."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_entry['exception'] = self.formatException(record.exc_info)
        if hasattr(record, 'ns'):
            log_entry['ns'] = record.ns
        if hasattr(record, 'field'):
            log_entry['field'] = record.field
        return json.dumps(log_entry)


def setup_logger(
    name: str = "docschema.cli",
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    json_format: bool = False,
) -> logging.Logger:
    """
    Set up and configure the logger.

    Also configures the package 'docschema' logger so that all child loggers
    (docschema.schema.field, docschema.adapter, etc.) inherit the same level
    and handlers.

    Args:
        name: Logger name
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        console_output: Whether to output to console
        json_format: Use structured JSON format

    Returns:
        Configured logger instance
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    package_logger = logging.getLogger('docschema')
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    # Console output goes to stderr so stdout stays clean for the schema
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.propagate = False

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
