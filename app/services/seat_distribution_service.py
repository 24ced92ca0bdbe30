import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.events.models import Event
from app.domain.categories import crud as categories_crud
from app.domain.categories.models import TicketCategory
from app.domain.categories.schemas import CategoryCreateDTO
from app.domain.tickets import crud as tickets_crud
from app.domain.exceptions import InvariantViolation, ConsistencyFault
from app.core.auditing import AuditSpan
from app.services import ticket_pool_service, token_service
from app.services.locking import lock_event, lock_active_category
from app.services.pricing_service import evaluate_price

logger = logging.getLogger("app.inventory.distribution")


def ensure_category_window(event: Event, schema: CategoryCreateDTO) -> None:
    if schema.expiration > event.event_end:
        raise InvariantViolation(
            "Category expiration must not be after the end of the event",
            ctx={"category": schema.name, "expiration": schema.expiration, "event_end": event.event_end}
        )
    if schema.inception >= schema.expiration:
        raise InvariantViolation(
            "Category inception must be before its expiration",
            ctx={"category": schema.name, "inception": schema.inception, "expiration": schema.expiration}
        )


def category_data(event: Event, schema: CategoryCreateDTO) -> dict:
    return {
        "event_id": event.id,
        "name": schema.name,
        "description": schema.description,
        "inception": schema.inception,
        "expiration": schema.expiration,
        "max_tickets": schema.max_tickets,
        "price_cents": evaluate_price(schema.price_cents, event.vat_rate, event.vat_included, event.free_of_charge),
        "access_restricted": schema.token_generation_requested,
        "active": True,
    }


def catch_all_category(categories: list[TicketCategory]) -> TicketCategory:
    """Latest expiration wins; on equal expirations the lowest id (earliest inserted) wins."""
    by_id = sorted(categories, key=lambda c: c.id)
    return sorted(by_id, key=lambda c: c.expiration, reverse=True)[0]


async def distribute_seats(
        db: AsyncSession,
        event: Event,
        category_schemas: list[CategoryCreateDTO]
) -> list[TicketCategory]:
    for schema in category_schemas:
        ensure_category_window(event, schema)

    categories = []
    for schema in category_schemas:
        categories.append(await categories_crud.create_category(db, category_data(event, schema)))
    await db.flush()

    remainder = event.available_seats - sum(c.max_tickets for c in categories)
    if remainder and categories:
        last = catch_all_category(categories)
        adjusted = last.max_tickets + remainder
        if adjusted < 0:
            raise InvariantViolation(
                "Categories request more seats than the event has",
                ctx={
                    "event_id": event.id,
                    "available_seats": event.available_seats,
                    "requested_seats": event.available_seats - remainder
                }
            )
        logger.info(
            "Assigning %d unallocated seats of event_id=%s to category_id=%s",
            remainder, event.id, last.id
        )
        last.max_tickets = adjusted

    for category in categories:
        if category.access_restricted:
            await token_service.generate_tokens(db, category, category.max_tickets)

    await db.flush()
    return categories


async def create_all_tickets_for_event(db: AsyncSession, event: Event) -> int:
    created_at = datetime.now(timezone.utc)
    total = 0
    for category in await categories_crud.list_active_categories(db, event.id):
        total += await ticket_pool_service.materialize_tickets(
            db,
            category,
            category.max_tickets,
            created_at,
            event.regular_price_cents,
            category.price_cents
        )
    return total


async def reallocate_tickets(
        db: AsyncSession,
        event: Event,
        source_category_id: int,
        target_category_id: int
) -> tuple[TicketCategory, TicketCategory]:
    """
    Shrink the source category to what it has sold and hand every unsold seat to the target.
    The unsold FREE ticket rows move along with the capacity.
    """
    async with AuditSpan(
        scope="CATEGORIES",
        action="REALLOCATE",
        object_type="ticket_category",
        object_id=source_category_id,
        organizer_id=event.organizer_id,
        event_id=event.id,
        category_id=source_category_id,
        meta={"target_category_id": target_category_id}
    ) as span:
        if source_category_id == target_category_id:
            raise InvariantViolation(
                "Source and target category must differ",
                ctx={"category_id": source_category_id}
            )

        await lock_event(db, event.id)
        first_id, second_id = sorted((source_category_id, target_category_id))
        locked = {
            first_id: await lock_active_category(db, event.id, first_id),
            second_id: await lock_active_category(db, event.id, second_id),
        }
        source = locked[source_category_id]
        target = locked[target_category_id]

        sold = await tickets_crud.count_sold_tickets(db, event.id, source.id)
        not_sold = source.max_tickets - sold
        if not_sold < 0:
            logger.error("category_id=%s has %d sold tickets but capacity %d", source.id, sold, source.max_tickets)
            raise ConsistencyFault(
                "Category sold more tickets than its capacity",
                ctx={"category_id": source.id, "max_tickets": source.max_tickets, "sold": sold}
            )

        await ticket_pool_service.reassign_unsold(db, event.id, source.id, target, not_sold)
        source.max_tickets = sold
        target.max_tickets = target.max_tickets + not_sold

        await token_service.cancel_expired_tokens(db, source.id)
        if target.access_restricted:
            await token_service.generate_tokens(db, target, not_sold)

        await db.flush()
        span.meta.update({"moved": not_sold, "source_sold": sold})
        return source, target
