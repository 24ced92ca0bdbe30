from sqlalchemy import select, update, insert, func
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Ticket, TicketStatus, UNSOLD_STATUSES


async def bulk_insert_tickets(db: AsyncSession, rows: list[dict]) -> None:
    if rows:
        await db.execute(insert(Ticket), rows)


async def lock_free_tickets(db: AsyncSession, event_id: int, category_id: int, limit: int) -> list[int]:
    """Lease up to `limit` FREE tickets; rows held by another transaction are skipped, never waited on."""
    ids = await db.scalars(
        select(Ticket.id)
        .where(
            Ticket.event_id == event_id,
            Ticket.category_id == category_id,
            Ticket.status == TicketStatus.FREE
        )
        .order_by(Ticket.id)
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    return list(ids)


async def invalidate_tickets(db: AsyncSession, ticket_ids: list[int]) -> int:
    result = await db.execute(
        update(Ticket)
        .where(Ticket.id.in_(ticket_ids), Ticket.status == TicketStatus.FREE)
        .values(status=TicketStatus.INVALIDATED)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


async def update_ticket_price(db: AsyncSession, ticket_ids: list[int], paid_price_cents: int) -> int:
    result = await db.execute(
        update(Ticket)
        .where(Ticket.id.in_(ticket_ids))
        .values(paid_price_cents=paid_price_cents)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


async def move_tickets(db: AsyncSession, ticket_ids: list[int], category_id: int, paid_price_cents: int) -> int:
    result = await db.execute(
        update(Ticket)
        .where(Ticket.id.in_(ticket_ids))
        .values(category_id=category_id, paid_price_cents=paid_price_cents)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


async def invalidate_all_free_tickets(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        update(Ticket)
        .where(Ticket.event_id == event_id, Ticket.status == TicketStatus.FREE)
        .values(status=TicketStatus.INVALIDATED)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


async def count_sold_tickets(db: AsyncSession, event_id: int, category_id: int | None = None) -> int:
    stmt = (
        select(func.count(Ticket.id))
        .where(Ticket.event_id == event_id, Ticket.status.not_in(UNSOLD_STATUSES))
    )
    if category_id is not None:
        stmt = stmt.where(Ticket.category_id == category_id)
    return int(await db.scalar(stmt) or 0)


async def count_free_tickets(db: AsyncSession, event_id: int, category_id: int) -> int:
    count = await db.scalar(
        select(func.count(Ticket.id))
        .where(
            Ticket.event_id == event_id,
            Ticket.category_id == category_id,
            Ticket.status == TicketStatus.FREE
        )
    )
    return int(count or 0)
