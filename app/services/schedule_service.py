import logging
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.categories import crud
from app.domain.categories.models import TicketCategory
from app.domain.exceptions import InvariantViolation

logger = logging.getLogger("app.inventory.schedule")


async def clamp_to_new_end(
        db: AsyncSession,
        categories: list[TicketCategory],
        new_end: datetime
) -> list[TicketCategory]:
    """
    Pull every category expiring after `new_end` back to it.
    Every category is checked before any is touched, so a rejected clamp changes nothing.
    """
    planned: list[tuple[TicketCategory, datetime]] = []
    for category in categories:
        if category.expiration <= new_end:
            continue
        new_expiration = min(new_end, category.expiration)
        if category.inception >= new_expiration:
            raise InvariantViolation(
                f'Cannot fix dates for category "{category.name}" (id: {category.id}), '
                f'try updating that category first',
                ctx={
                    "category_id": category.id,
                    "inception": category.inception,
                    "expiration": category.expiration,
                    "new_end": new_end
                }
            )
        planned.append((category, new_expiration))

    for category, new_expiration in planned:
        logger.info("Clamping category_id=%s expiration %s -> %s", category.id, category.expiration, new_expiration)
        await crud.update_category(category, {"expiration": new_expiration})

    if planned:
        await db.flush()
    return [category for category, _ in planned]
