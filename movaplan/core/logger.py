"""Loguru setup for the plan engine.

Planner events carry their fields in ``extra`` (see
``movaplan.domains.training_plan.observability``), so every sink renders
them. The file sink can write JSON lines for the rejection dashboard's
log shipper.
"""

import sys
from pathlib import Path

from loguru import logger

SERVICE_NAME = "movaplan"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> | {extra}"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message} | {extra}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> None:
    """Route planner logs to stderr and, optionally, a rotating file.

    Args:
        level: Minimum level for every sink
        log_file: File sink path; console only when None
        rotation: When the file sink rotates (e.g., "10 MB", "1 day")
        retention: How long rotated files are kept
        serialize: Write the file sink as JSON lines instead of text
    """
    logger.remove()
    logger.configure(extra={"service": SERVICE_NAME})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            serialize=serialize,
        )

    logger.debug(f"Logging configured: level={level}, file={log_file}, json={serialize}")


setup_logger(level="INFO")
