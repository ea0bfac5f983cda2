"""Logging setup for the statement verifier.

Everything logs through stdlib ``logging``. ``setup_logger`` is called once
by the entry point (and once per background run) to attach a console
handler and a file handler under the logs directory.
"""

import logging
import os
import re
from typing import Optional

from statement_verifier.config.settings import LOG_LEVEL, LOG_FORMAT, LOGS_DIR

API_KEY_PATTERN = re.compile(r"sk-[A-Za-z0-9_\-]{8,}")


class SecretRedactingFilter(logging.Filter):
    """Masks anything shaped like an OpenAI API key in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if API_KEY_PATTERN.search(message):
            record.msg = API_KEY_PATTERN.sub("sk-***", message)
            record.args = None
        return True


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: str = LOG_LEVEL,
    logs_dir: str = LOGS_DIR
) -> logging.Logger:
    """Attach console and file output to the named logger.

    Calling this again for the same name replaces the previous handlers.

    Args:
        name: Logger name; child loggers (``name.*``) propagate to it.
        log_file: File name inside ``logs_dir``; defaults to ``<name>.log``.
        level: Level name such as ``"INFO"``.
        logs_dir: Directory for the log file, created when missing.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    os.makedirs(logs_dir, exist_ok=True)
    log_path = os.path.join(logs_dir, log_file or f"{name}.log")

    formatter = logging.Formatter(LOG_FORMAT)
    redactor = SecretRedactingFilter()
    for handler in (logging.StreamHandler(), logging.FileHandler(log_path)):
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class ProcessingLogger:
    """Writes the progress of one verification run to its own log file."""

    def __init__(self, task_id: str, logs_dir: str = LOGS_DIR) -> None:
        self.task_id = task_id
        self.logger = setup_logger(f"processing.{task_id}", logs_dir=logs_dir)

    def log_start(self, file_path: str) -> None:
        self.logger.info(f"Started verification {self.task_id} for file: {file_path}")

    def log_progress(self, message: str) -> None:
        self.logger.info(f"Task {self.task_id}: {message}")

    def log_error(self, error: Exception, context: str = "") -> None:
        """Log a failed run with its traceback.

        Args:
            error: Exception that ended the run.
            context: Which part of the run failed.
        """
        self.logger.error(
            f"Task {self.task_id}: Error in {context or 'run'}: {error}",
            exc_info=True,
        )

    def log_completion(self, outcome: str) -> None:
        self.logger.info(f"Task {self.task_id}: Completed. Outcome: {outcome}")
