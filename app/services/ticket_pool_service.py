import logging
import uuid
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.categories.models import TicketCategory
from app.domain.tickets import crud
from app.domain.tickets.models import TicketStatus
from app.domain.exceptions import ConcurrentModificationConflict
from app.services.batching import build_batch

logger = logging.getLogger("app.inventory.tickets")


async def materialize_tickets(
        db: AsyncSession,
        category: TicketCategory,
        count: int,
        created_at: datetime,
        original_price_cents: int,
        paid_price_cents: int
) -> int:
    rows = build_batch(count, lambda: {
        "uuid": uuid.uuid4(),
        "event_id": category.event_id,
        "category_id": category.id,
        "status": TicketStatus.FREE,
        "original_price_cents": original_price_cents,
        "paid_price_cents": paid_price_cents,
        "created_at": created_at,
    })
    await crud.bulk_insert_tickets(db, rows)
    logger.info("Materialized %d tickets for category_id=%s", len(rows), category.id)
    return len(rows)


async def _lease_free_tickets(db: AsyncSession, event_id: int, category_id: int, count: int, message: str) -> list[int]:
    if count <= 0:
        return []
    ids = await crud.lock_free_tickets(db, event_id, category_id, count)
    if len(ids) < count:
        raise ConcurrentModificationConflict(
            message,
            ctx={"event_id": event_id, "category_id": category_id, "requested": count, "available": len(ids)}
        )
    return ids


async def invalidate_unsold(db: AsyncSession, event_id: int, category_id: int, count: int) -> list[int]:
    """
    Retire `count` FREE tickets of a category.
    All-or-nothing: a short lease raises before any ticket changes state.
    """
    ids = await _lease_free_tickets(
        db, event_id, category_id, count, "Cannot update the category: tickets already sold"
    )
    await crud.invalidate_tickets(db, ids)
    logger.info("Invalidated %d tickets for category_id=%s", len(ids), category_id)
    return ids


async def reprice_unsold(
        db: AsyncSession,
        event_id: int,
        category_id: int,
        count: int,
        new_price_cents: int
) -> list[int]:
    ids = await _lease_free_tickets(db, event_id, category_id, count, "Not enough tickets to reprice")
    await crud.update_ticket_price(db, ids, new_price_cents)
    logger.info("Repriced %d tickets for category_id=%s to %d", len(ids), category_id, new_price_cents)
    return ids


async def reassign_unsold(
        db: AsyncSession,
        event_id: int,
        source_category_id: int,
        target_category: TicketCategory,
        count: int
) -> list[int]:
    ids = await _lease_free_tickets(
        db, event_id, source_category_id, count, "Not enough unsold tickets to reallocate"
    )
    await crud.move_tickets(db, ids, target_category.id, target_category.price_cents)
    return ids


async def invalidate_all_tickets(db: AsyncSession, event_id: int) -> int:
    return await crud.invalidate_all_free_tickets(db, event_id)
