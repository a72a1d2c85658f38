"""Logging setup shared by the API process and the sweeps."""
import logging

from exam_app.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    level_name = (level or get_settings().log_level).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level_name, format=LOG_FORMAT)
    root.setLevel(level_name)
    # SQL echo is controlled by the engine, keep the sqlalchemy logger quiet
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
