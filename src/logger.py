"""
Logging Setup Module.

Builds the application logger used by every module. Messages are usually
dictionaries (``{"message": ..., "repository": ...}``); structlog renders each
record, with the dictionary merged in, as one JSON document per line to a
rotating log file. In development mode the same records are echoed to the
console.
"""

import logging
import logging.handlers
import os
from typing import Any, Dict

import structlog


def merge_dict_message(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Structlog processor that expands dictionary messages of stdlib records.

    ``logger.info({"message": "...", "repository": "o/r"})`` becomes the keys
    ``message`` and ``repository`` of the rendered event.
    """
    record = event_dict.get("_record")
    if record is not None and isinstance(record.msg, dict):
        event_dict.pop("event", None)
        event_dict.update(record.msg)
    elif "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def build_formatter() -> structlog.stdlib.ProcessorFormatter:
    """JSON formatter for stdlib handlers."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            merge_dict_message,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str),
        ],
    )


class LogManager:
    """
    Configure a named application logger.

    Attributes:
        logger (logging.Logger): The configured logger
    """

    def __init__(
        self,
        app_name: str,
        log_dir: str = "logs",
        development: bool = False,
        level: int = logging.INFO,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ):
        """Initialize the logger and its handlers.

        Args:
            app_name (str): Logger name, also used for the log file name
            log_dir (str): Directory for log files
            development (bool): Also log to the console when True
            level (int): Logging level
            max_bytes (int): Size at which the log file is rotated
            backup_count (int): Number of rotated files to keep
        """
        self.logger = logging.getLogger(app_name)
        self.logger.setLevel(level)

        # Handlers are attached once per process
        if self.logger.handlers:
            return

        formatter = build_formatter()

        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{app_name}.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)

        if development:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)
