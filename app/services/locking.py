from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.events import crud as events_crud
from app.domain.events.models import Event
from app.domain.categories import crud as categories_crud
from app.domain.categories.models import TicketCategory
from app.domain.exceptions import NotFound


async def lock_event(db: AsyncSession, event_id: int) -> Event:
    """Row-lock the event so seat-allocation checks of concurrent edits on it run one after another."""
    event = await events_crud.get_event_for_update(db, event_id)
    if not event:
        raise NotFound("Event not found", ctx={"event_id": event_id})
    return event


async def lock_active_category(db: AsyncSession, event_id: int, category_id: int) -> TicketCategory:
    category = await categories_crud.get_category_for_update(db, event_id, category_id)
    if not category or not category.active:
        raise NotFound("Ticket category not found", ctx={"event_id": event_id, "category_id": category_id})
    return category
