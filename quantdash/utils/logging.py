import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "quantdash.log"


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path = Path("logs"),
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> Path:
    """Route loguru output to stderr and a rotating file under ``log_dir``.

    Returns the path of the log file.
    """
    logger.remove()

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    logger.add(
        sys.stderr,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan> | "
            "{message}"
        ),
        level=log_level,
        colorize=True,
    )

    logger.add(
        log_file,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
        level=log_level,
        rotation=rotation,
        retention=retention,
        compression="zip",
        colorize=False,
    )

    logger.debug(
        f"Logging initialized at {log_level} level "
        f"(file {log_file}, rotation {rotation}, retention {retention})"
    )
    return log_file
