from learnhub.config import SessionLocal, create_db, get_settings
from learnhub.services.gamification_service import GamificationService
from learnhub.utils.logger import get_logger

logger = get_logger("bootstrap")


def bootstrap() -> None:
    """Create tables and, when enabled, load the default catalogs into empty tables."""
    settings = get_settings()
    create_db()
    if not settings.seed_catalog_on_startup:
        logger.info("catalog seeding disabled")
        return
    with SessionLocal() as db:
        GamificationService(db, settings=settings).seed_defaults()
