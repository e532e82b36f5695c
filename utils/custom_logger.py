# -*- coding: utf-8 -*-

# --- Standard Library Imports ---
import logging
import datetime
import os
import traceback
import uuid
from pathlib import Path
from typing import Union

ERROR_LOGGER_NAME = 'LumenBot.errors'


# --- Custom Formatter Class ---
class ErrorReportFormatter(logging.Formatter):
    """
    A logging formatter that renders records as detailed, multi-line error reports.

    Optional ``extra`` keys: ``error_code``, ``raw_data``, ``severity``, ``note``, ``possible_fix``.
    """

    def format(self, record: logging.LogRecord) -> str:
        error_code = getattr(record, "error_code", uuid.uuid4().hex[:8])
        raw_data = getattr(record, "raw_data", "N/A")
        folder, file_name = os.path.split(record.pathname)
        file_type = file_name.split('.')[-1]
        severity = getattr(record, "severity", "High")
        note = getattr(record, "note", "An unexpected error occurred.")
        possible_fix = getattr(record, "possible_fix", "Review the error details and traceback.")

        if record.exc_info:
            error_type, error_value, tb = record.exc_info
            error_text = record.getMessage() + "\n" + ''.join(traceback.format_exception(error_type, error_value, tb))
        else:
            error_text = record.getMessage()

        error_time = datetime.datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")

        return f"""
──────────────── ⚠️ ERROR REPORT ⚠️ ────────────────
error code   : [{error_code}]
error        : {error_text.strip()}
error data   : [{raw_data}]
file         : [{file_name}]
folder       : [{folder}]
type         : [{file_type}]
severity     : [{severity}]
note         : [{note}]
possible fix : [{possible_fix}]
error time   : [{error_time}]
─────────────────────────────────────────────────────
"""


def setup_logger(log_dir: Union[str, Path] = 'logs') -> logging.Logger:
    """Sets up the error-report logger, writing to ``<log_dir>/errors.log`` and the console."""
    logger = logging.getLogger(ERROR_LOGGER_NAME)
    logger.setLevel(logging.ERROR)
    if logger.handlers:
        return logger

    formatter = ErrorReportFormatter()

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_dir / 'errors.log', mode='a', encoding='utf-8')
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Reports are already printed; keep them out of the root handlers
    logger.propagate = False

    return logger
