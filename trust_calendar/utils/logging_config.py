"""
Minimal structured logging configuration for trust-calendar.

Provides:
- File logging for errors and warnings
- Console logging for critical errors only
- Automatic log rotation
"""
import logging
import logging.handlers
from pathlib import Path
from datetime import datetime


APP_LOGGER_NAME = "trust_calendar"


def setup_logging(
    log_dir: "str | Path | None" = None,
    app_name: str = APP_LOGGER_NAME,
    console_level: int = logging.CRITICAL,
) -> logging.Logger:
    """
    Setup structured logging with file output.

    Module loggers (logging.getLogger(__name__)) under the trust_calendar
    package propagate to the logger configured here.

    Args:
        log_dir: Directory for log files (created if missing). When *None*
                 the default location from utils.paths is used.
        app_name: Application name for logger
        console_level: Minimum level echoed to the console

    Returns:
        Configured logger instance
    """
    if log_dir is None:
        from .paths import get_logs_dir  # noqa: PLC0415
        log_path = get_logs_dir()
    else:
        log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(app_name)
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    # File handler: rotating log (max 5MB, keep 3 backups)
    log_file = log_path / f"{app_name}_{datetime.now().strftime('%Y%m%d')}.log"
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=3,
        encoding='utf-8',
    )
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    ))
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(console_handler)

    return logger
