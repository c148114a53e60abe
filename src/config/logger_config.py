import sys
from pathlib import Path

from loguru import logger

log_dir = Path("logs")
log_file = log_dir / "domain_health_{time}.log"

logger.remove()
logger.add(
    sys.stderr,
    level="INFO",
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
)
logger.add(
    log_file,
    rotation="256 MB",  # split once a file reaches 256MB
    retention="10 days",  # old files are deleted automatically
    compression="zip",
    encoding="utf-8",
    level="DEBUG",
    delay=True,
)
