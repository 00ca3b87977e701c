import logging

from .config import get_config

LOG_FORMAT = '%(asctime)s [%(name)s] %(levelname)s: %(message)s'


def setup_logging(level: str = None) -> None:
    """Configure root logging once for the whole process."""
    level_name = (level or get_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
    )
