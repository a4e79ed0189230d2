# storefront/tasks/expire.py
import asyncio
from datetime import datetime, timedelta, timezone

from storefront.celery_worker import celery_app
from storefront.data.database import Database
from storefront.repos.cart_repo import CartRepo
from storefront.utils.logging import get_logger
from storefront.utils.settings import CART_TTL_HOURS, DATABASE_URL

logger = get_logger(__name__)


async def expire_stale_carts(database: Database, now: datetime | None = None) -> int:
    """Mark every active cart idle for longer than the TTL as expired."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=CART_TTL_HOURS)

    async with database.session() as session:
        count = await CartRepo(session).expire_stale_carts(cutoff=cutoff)

    logger.info(f"Expired {count} stale carts (idle since before {cutoff.isoformat()})")
    return count


async def _run() -> int:
    database = Database(DATABASE_URL)
    try:
        return await expire_stale_carts(database)
    finally:
        await database.dispose()


@celery_app.task(name="storefront.tasks.expire.expire_carts_task")
def expire_carts_task():
    logger.info("Expire carts task started")
    return asyncio.run(_run())
