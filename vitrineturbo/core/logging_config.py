"""
VitrineTurbo - Logging
"""
import logging
import sys

from .config import settings


def setup_logging(level: str = None) -> None:
    """Configura o logger raiz a partir de LOG_LEVEL"""
    level = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        stream=sys.stderr,
        force=True,
    )
    # SQLAlchemy só em DEBUG
    if level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
