"""
Logging configuration utilities with structured logging and log rotation.
"""
import json
import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any

from tqdm import tqdm


def setup_logging(
    log_file: str = "photos_sync.log",
    level: str = "INFO",
    enable_json: bool = False,
    enable_rotation: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    separate_error_log: bool = True
) -> None:
    """
    Set up logging with rotation and optional structured output.

    Args:
        log_file: Path to log file
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_json: If True, use JSON format for structured logging
        enable_rotation: If True, enable log rotation
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
        separate_error_log: If True, create separate error log file
    """
    root_logger = logging.getLogger()
    root_logger.handlers = []

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if enable_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler = TqdmConsoleHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    if enable_rotation:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
    else:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')

    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if separate_error_log:
        error_log_file = log_path.parent / f"{log_path.stem}_error{log_path.suffix}"
        error_handler = logging.handlers.RotatingFileHandler(
            str(error_log_file),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root_logger.addHandler(error_handler)

    # Per-request debug lines from the transport are noisy; keep urllib3 quiet
    logging.getLogger('urllib3').setLevel(max(log_level, logging.WARNING))


class TqdmConsoleHandler(logging.StreamHandler):
    """Console handler that writes through tqdm so progress bars stay intact."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
            self.flush()
        except Exception:
            self.handleError(record)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_obj: Dict[str, Any] = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_obj['exception'] = self.formatException(record.exc_info)

        # Fields passed as logger.info(..., extra={'album': ...})
        for key in ('album', 'directory', 'file_name'):
            if hasattr(record, key):
                log_obj[key] = getattr(record, key)

        return json.dumps(log_obj)
