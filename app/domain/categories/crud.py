from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from .models import TicketCategory


async def get_category(db: AsyncSession, event_id: int, category_id: int) -> TicketCategory | None:
    stmt = select(TicketCategory).where(TicketCategory.id == category_id, TicketCategory.event_id == event_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_category_for_update(db: AsyncSession, event_id: int, category_id: int) -> TicketCategory | None:
    stmt = (
        select(TicketCategory)
        .where(TicketCategory.id == category_id, TicketCategory.event_id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalars().first()


async def list_active_categories(db: AsyncSession, event_id: int) -> list[TicketCategory]:
    stmt = (
        select(TicketCategory)
        .where(TicketCategory.event_id == event_id, TicketCategory.active.is_(True))
        .order_by(TicketCategory.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def allocated_seats(db: AsyncSession, event_id: int) -> int:
    total = await db.scalar(
        select(func.coalesce(func.sum(TicketCategory.max_tickets), 0))
        .where(TicketCategory.event_id == event_id, TicketCategory.active.is_(True))
    )
    return int(total or 0)


async def create_category(db: AsyncSession, data: dict) -> TicketCategory:
    category = TicketCategory(**data)
    db.add(category)
    return category


async def update_category(category: TicketCategory, data: dict) -> TicketCategory:
    for key, value in data.items():
        setattr(category, key, value)
    return category


async def deactivate_categories(db: AsyncSession, event_id: int) -> list[int]:
    result = await db.execute(
        update(TicketCategory)
        .where(TicketCategory.event_id == event_id, TicketCategory.active.is_(True))
        .values(active=False)
        .returning(TicketCategory.id)
    )
    return list(result.scalars().all())
