"""
Logging utilities for the RSS reader.
Contains helper functions for consistent logging across modules.
"""
import logging, os
from logging.handlers import TimedRotatingFileHandler
from typing import Optional


def log_fetch_attempt(logger: logging.Logger, url: str, user_agent: str) -> None:
    """
    Log an outgoing feed request.

    Args:
        logger: Logger instance to use
        url: URL being fetched
        user_agent: User-Agent header sent with the request
    """
    logger.debug(f"Fetching feed {url} (User-Agent: {user_agent})")


def log_fetch_success(logger: logging.Logger, url: str, status_code: int, duration: float) -> None:
    """
    Log a feed response that will be handed to the caller.

    Args:
        logger: Logger instance to use
        url: URL that was fetched
        status_code: HTTP status of the response
        duration: Time until the response headers arrived
    """
    logger.info(f"Fetched feed {url}: HTTP {status_code} in {duration:.2f}s")


def log_fetch_failure(logger: logging.Logger, url: str, error: Exception) -> None:
    """
    Log a failed feed request.

    Args:
        logger: Logger instance to use
        url: URL that failed
        error: The error raised to the caller
    """
    logger.warning(f"Failed to fetch feed {url}: {type(error).__name__}: {error}")


def log_parse_results(logger: logging.Logger, kind: str, count: int, size: int) -> None:
    """
    Log decoding results.

    Args:
        logger: Logger instance to use
        kind: "RSS channel" or "Atom feed"
        count: Number of items or entries decoded
        size: Size of the document in bytes
    """
    logger.debug(f"Decoded {kind}: {count} records from {format_bytes(size)}")


def format_bytes(byte_count: int) -> str:
    """
    Format byte count in human-readable format.

    Args:
        byte_count: Number of bytes

    Returns:
        Formatted string (e.g., "1.2 KB", "3.4 MB")
    """
    if byte_count == 0:
        return "0 B"

    sizes = ["B", "KB", "MB", "GB"]
    i = 0

    while byte_count >= 1024 and i < len(sizes) - 1:
        byte_count /= 1024.0
        i += 1

    return f"{byte_count:.1f} {sizes[i]}"


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure console logging, and daily rotated file logging when log_dir is given.

    Args:
        log_level: Minimum logging level (e.g., "INFO", "DEBUG")
        log_dir: Directory to store log files, None to log to the console only

    Returns:
        The configured root logger instance.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = TimedRotatingFileHandler(os.path.join(log_dir, 'rss_reader.log'), when='midnight', interval=1, backupCount=7)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(file_handler)

    root_logger.debug(f"Logging configured to level {log_level.upper()}")
    return root_logger
