import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.events.models import Event
from app.domain.categories import crud
from app.domain.categories.models import TicketCategory
from app.domain.categories.schemas import CategoryCreateDTO, CategoryUpdateDTO, CategoryInventoryDTO, \
    CategoryReadDTO
from app.domain.tickets import crud as tickets_crud
from app.domain.tokens import crud as tokens_crud
from app.domain.tokens.models import TokenStatus
from app.domain.exceptions import NotFound, InvariantViolation, IllegalStateTransition, \
    ConcurrentModificationConflict, ConsistencyFault
from app.core.auditing import AuditSpan
from app.services import ticket_pool_service, token_service
from app.services.locking import lock_event, lock_active_category
from app.services.seat_distribution_service import ensure_category_window, category_data

logger = logging.getLogger("app.inventory.categories")


async def _ensure_seats_available(db: AsyncSession, event: Event, additional: int, category_id: int | None = None):
    allocated = await crud.allocated_seats(db, event.id)
    if allocated + additional > event.available_seats:
        raise InvariantViolation(
            "Not enough seats",
            ctx={
                "event_id": event.id,
                "category_id": category_id,
                "available_seats": event.available_seats,
                "allocated_seats": allocated,
                "requested_change": additional
            }
        )


async def get_category(db: AsyncSession, event_id: int, category_id: int) -> TicketCategory:
    category = await crud.get_category(db, event_id, category_id)
    if not category:
        raise NotFound("Ticket category not found", ctx={"event_id": event_id, "category_id": category_id})
    return category


async def list_categories(db: AsyncSession, event_id: int) -> list[TicketCategory]:
    return await crud.list_active_categories(db, event_id)


async def load_category_inventory(db: AsyncSession, event_id: int, category_id: int) -> CategoryInventoryDTO:
    category = await get_category(db, event_id, category_id)
    sold = await tickets_crud.count_sold_tickets(db, event_id, category_id)
    free = await tickets_crud.count_free_tickets(db, event_id, category_id)
    tokens = await tokens_crud.count_tokens_by_status(db, category_id)
    return CategoryInventoryDTO(
        **CategoryReadDTO.model_validate(category).model_dump(),
        sold_tickets=sold,
        not_sold_tickets=category.max_tickets - sold,
        free_tickets=free,
        waiting_tokens=tokens.get(TokenStatus.WAITING, 0),
        locked_tokens=tokens.get(TokenStatus.LOCKED, 0)
    )


async def insert_category(db: AsyncSession, event: Event, schema: CategoryCreateDTO) -> TicketCategory:
    async with AuditSpan(
        scope="CATEGORIES",
        action="CREATE",
        object_type="ticket_category",
        organizer_id=event.organizer_id,
        event_id=event.id,
        meta={"max_tickets": schema.max_tickets, "restricted": schema.token_generation_requested}
    ) as span:
        event = await lock_event(db, event.id)
        await _ensure_seats_available(db, event, schema.max_tickets)
        ensure_category_window(event, schema)

        category = await crud.create_category(db, category_data(event, schema))
        await db.flush()

        if category.access_restricted:
            await token_service.generate_tokens(db, category, category.max_tickets)
        await ticket_pool_service.materialize_tickets(
            db,
            category,
            category.max_tickets,
            datetime.now(timezone.utc),
            schema.price_cents,
            category.price_cents
        )

        span.object_id = category.id
        span.category_id = category.id
        return category


async def _handle_ticket_number_modification(
        db: AsyncSession,
        category: TicketCategory,
        capacity_delta: int,
        nominal_price_cents: int
) -> None:
    if capacity_delta == 0:
        logger.debug("Ticket handling not required, capacity of category_id=%s unchanged", category.id)
        return

    logger.info("Capacity of category_id=%s changed by %d", category.id, capacity_delta)
    if capacity_delta > 0:
        await ticket_pool_service.materialize_tickets(
            db,
            category,
            capacity_delta,
            datetime.now(timezone.utc),
            nominal_price_cents,
            category.price_cents
        )
    else:
        await ticket_pool_service.invalidate_unsold(db, category.event_id, category.id, -capacity_delta)


async def _handle_price_change(db: AsyncSession, category: TicketCategory, original_price_cents: int) -> None:
    if category.price_cents == original_price_cents:
        return
    await ticket_pool_service.reprice_unsold(
        db, category.event_id, category.id, category.max_tickets, category.price_cents
    )


async def _handle_token_modification(
        db: AsyncSession,
        category: TicketCategory,
        was_restricted: bool,
        original_max_tickets: int,
        capacity_delta: int
) -> None:
    if was_restricted != category.access_restricted:
        if category.access_restricted:
            await token_service.generate_tokens(db, category, category.max_tickets)
            return
        cancelled = await token_service.cancel_all_tokens(db, category.id)
        if cancelled != original_max_tickets:
            logger.error(
                "Token mismatch on category_id=%s: cancelled %d, expected %d",
                category.id, cancelled, original_max_tickets
            )
            raise ConsistencyFault(
                "Cancelled tokens do not match the category capacity",
                ctx={"category_id": category.id, "expected": original_max_tickets, "cancelled": cancelled}
            )
        return

    if not category.access_restricted or capacity_delta == 0:
        return

    if capacity_delta > 0:
        await token_service.generate_tokens(db, category, capacity_delta)
        return

    required = -capacity_delta
    token_ids = await token_service.lock_tokens_for_reduction(db, category.id, required)
    if len(token_ids) < required:
        raise ConcurrentModificationConflict(
            "Not enough unused tokens to reduce the category",
            ctx={"category_id": category.id, "requested": required, "available": len(token_ids)}
        )
    await token_service.cancel_tokens(db, token_ids)


async def update_category(
        db: AsyncSession,
        event: Event,
        category_id: int,
        schema: CategoryUpdateDTO
) -> TicketCategory:
    """
    Resize / reprice / toggle restriction of a category.
    Validation happens before any write; reconciliation of tickets and tokens follows the write
    and any shortfall aborts the whole edit.
    """
    async with AuditSpan(
        scope="CATEGORIES",
        action="UPDATE",
        object_type="ticket_category",
        object_id=category_id,
        organizer_id=event.organizer_id,
        event_id=event.id,
        category_id=category_id,
        meta={"max_tickets": schema.max_tickets, "restricted": schema.token_generation_requested}
    ) as span:
        event = await lock_event(db, event.id)
        category = await lock_active_category(db, event.id, category_id)

        original_max_tickets = category.max_tickets
        original_price_cents = category.price_cents
        was_restricted = category.access_restricted
        capacity_delta = schema.max_tickets - original_max_tickets

        await _ensure_seats_available(db, event, capacity_delta, category_id)
        ensure_category_window(event, schema)

        if schema.token_generation_requested != was_restricted:
            sold = await tickets_crud.count_sold_tickets(db, event.id, category_id)
            if sold > 0:
                raise IllegalStateTransition(
                    "Cannot update the category: there are tickets already sold",
                    ctx={"category_id": category_id, "sold_tickets": sold}
                )

        data = category_data(event, schema)
        data.pop("event_id")
        data.pop("active")
        await crud.update_category(category, data)
        await db.flush()

        await _handle_ticket_number_modification(db, category, capacity_delta, schema.price_cents)
        await _handle_price_change(db, category, original_price_cents)
        await _handle_token_modification(db, category, was_restricted, original_max_tickets, capacity_delta)

        await db.flush()
        span.meta.update({
            "capacity_delta": capacity_delta,
            "price_changed": category.price_cents != original_price_cents
        })
        return category
