import sys
import os
from loguru import logger

# Flag to track if logging has been configured
_logging_configured = False


def setup_logging(level="INFO", suppress_console=None, enable_file_logging=None):
    """
    Configures the global logger.

    By default, only console logging is enabled. File logging is opt-in via
    QUERYTRAIL_FILE_LOGGING=1 environment variable or enable_file_logging=True.

    Args:
        level: Logging level (default: INFO)
        suppress_console: If True, suppress console logging. If None, check QUERYTRAIL_MACHINE_MODE env var.
        enable_file_logging: If True, enable file logging. If None, check QUERYTRAIL_FILE_LOGGING env var.
    """
    global _logging_configured

    # Only configure once to avoid duplicate handlers
    if _logging_configured:
        return
    _logging_configured = True

    logger.remove()

    if suppress_console is None:
        suppress_console = os.getenv("QUERYTRAIL_MACHINE_MODE", "").lower() in ("1", "true", "yes")

    # Stream 1: Human-readable console output (only if not suppressed)
    if not suppress_console:
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
            colorize=True
        )

    # Stream 2: File logging is opt-in only
    if enable_file_logging is None:
        enable_file_logging = os.getenv("QUERYTRAIL_FILE_LOGGING", "").lower() in ("1", "true", "yes")

    if enable_file_logging:
        from querytrail.paths import get_paths
        paths = get_paths()
        paths.ensure_dirs()

        logger.add(
            paths.logs_dir / "querytrail.log",
            level="INFO",
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            catch=True,
            serialize=False
        )


def reset_logging():
    """Allow setup_logging() to run again (used when CLI flags change the mode)."""
    global _logging_configured
    _logging_configured = False


# Configure the logger on import (will check env var for machine mode)
setup_logging()
