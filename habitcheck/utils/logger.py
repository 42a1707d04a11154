import logging
import logging.config
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from habitcheck.config import TrackerConfig


def setup_logger(log_file: str = "logs/habitcheck.log", max_bytes: int = 10_000_000, backup_count: int = 5):
    Path(log_file).parent.mkdir(exist_ok=True, parents=True)
    logger = logging.getLogger()
    logger.setLevel(logging.INFO)
    handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


def configure_logging(tracker_config: Optional[TrackerConfig] = None) -> None:
    """Apply the console/file handler layout described by the configuration."""
    if tracker_config is None:
        from habitcheck.config import config as tracker_config
    logging.config.dictConfig(tracker_config.get_logging_config())
