import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure the root logger once; later calls are no-ops."""
    logger = logging.getLogger()

    # Avoid adding handlers multiple times
    if any(getattr(h, "_waste_diversion", False) for h in logger.handlers):
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if log_file:
        # 10MB per file, keep last 5 files
        handler: logging.Handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._waste_diversion = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
