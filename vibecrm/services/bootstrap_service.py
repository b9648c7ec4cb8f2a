import logging

from ..core.config import settings
from ..db.database import AsyncSessionLocal
from .user_service import grant_superadmin

logger = logging.getLogger(__name__)


async def ensure_superadmin() -> None:
    """Grant superadmin to SUPERADMIN_EMAIL if configured.

    Safe to run multiple times (idempotent). Startup continues if it fails.
    """
    if not settings.SUPERADMIN_EMAIL:
        return
    async with AsyncSessionLocal() as db:
        try:
            await grant_superadmin(db, settings.SUPERADMIN_EMAIL, settings.SUPERADMIN_PASSWORD)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.warning("Could not ensure superadmin %s: %s", settings.SUPERADMIN_EMAIL, e)
