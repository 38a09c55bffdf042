import logging
from typing import Optional

from talenthr.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # pymongo logs every command at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)
