import logging
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once from LOG_LEVEL."""
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # SQL echo is noisy; keep it behind DEBUG
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )
    _configured = True
