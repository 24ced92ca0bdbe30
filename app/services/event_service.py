import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.core.geolocation import LocationResolver
from app.domain.events import crud
from app.domain.events.models import Event
from app.domain.events.schemas import EventCreateDTO, EventUpdateDTO, EventHeaderUpdateDTO, EventPricesDTO
from app.domain.categories import crud as categories_crud
from app.domain.tickets import crud as tickets_crud
from app.domain.exceptions import NotFound, Conflict, InvalidInput, IllegalStateTransition, ConsistencyFault
from app.services import seat_distribution_service, schedule_service, ticket_pool_service, token_service
from app.services.locking import lock_event
from app.services.pricing_service import evaluate_price, stored_vat_rate

logger = logging.getLogger("app.inventory.events")

PRICE_FIELDS = ("currency", "available_seats", "vat_included", "free_of_charge")


def _price_data(schema: EventPricesDTO) -> dict:
    data = {field: getattr(schema, field) for field in PRICE_FIELDS}
    data["regular_price_cents"] = evaluate_price(
        schema.regular_price_cents, schema.vat_rate, schema.vat_included, schema.free_of_charge
    )
    data["vat_rate"] = stored_vat_rate(schema.vat_rate, schema.free_of_charge)
    return data


def _event_data(schema: EventCreateDTO, resolver: LocationResolver) -> dict:
    geolocation = resolver.resolve(schema.location)
    return {
        "short_name": schema.short_name,
        "description": schema.description,
        "location": schema.location,
        "latitude": geolocation.latitude,
        "longitude": geolocation.longitude,
        "time_zone": geolocation.time_zone,
        "event_start": schema.event_start,
        "event_end": schema.event_end,
        **_price_data(schema),
    }


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await crud.get_event_by_id(db, event_id)
    if not event:
        raise NotFound("Event not found", ctx={"event_id": event_id})
    return event


async def create_event(
        db: AsyncSession,
        organizer_id: int,
        schema: EventCreateDTO,
        resolver: LocationResolver
) -> Event:
    async with AuditSpan(
        scope="EVENTS",
        action="CREATE",
        object_type="event",
        organizer_id=organizer_id,
        meta={"available_seats": schema.available_seats, "categories": len(schema.categories)}
    ) as span:
        data = _event_data(schema, resolver)
        data["organizer_id"] = organizer_id
        event = await crud.create_event(db, data)
        try:
            await db.flush()
        except IntegrityError as e:
            raise Conflict("Event short name already in use", ctx={"short_name": schema.short_name}) from e

        span.object_id = event.id
        span.event_id = event.id

        await seat_distribution_service.distribute_seats(db, event, schema.categories)
        span.meta["tickets"] = await seat_distribution_service.create_all_tickets_for_event(db, event)
        return event


async def update_event_header(
        db: AsyncSession,
        event: Event,
        schema: EventHeaderUpdateDTO,
        resolver: LocationResolver
) -> Event:
    fields = list(schema.model_dump(exclude_none=True).keys())
    async with AuditSpan(
        scope="EVENTS",
        action="UPDATE_HEADER",
        object_type="event",
        object_id=event.id,
        organizer_id=event.organizer_id,
        event_id=event.id,
        meta={"fields": fields}
    ) as span:
        event = await lock_event(db, event.id)
        data = schema.model_dump(exclude_none=True)

        event_start = data.get("event_start", event.event_start)
        event_end = data.get("event_end", event.event_end)
        if event_end <= event_start:
            raise InvalidInput(
                "event_end must be after event_start",
                ctx={"event_start": event_start, "event_end": event_end}
            )

        if "location" in data:
            geolocation = resolver.resolve(data["location"])
            data.update(latitude=geolocation.latitude, longitude=geolocation.longitude,
                        time_zone=geolocation.time_zone)

        window_changed = event_start != event.event_start or event_end != event.event_end
        if window_changed:
            categories = await categories_crud.list_active_categories(db, event.id)
            clamped = await schedule_service.clamp_to_new_end(db, categories, event_end)
            span.meta["clamped_categories"] = [c.id for c in clamped]

        event = await crud.update_event(event, data)
        try:
            await db.flush()
            await db.refresh(event)
        except IntegrityError as e:
            raise Conflict("Event short name already in use", ctx={"event_id": event.id}) from e
        return event


async def update_event_prices(db: AsyncSession, event: Event, schema: EventPricesDTO) -> Event:
    async with AuditSpan(
        scope="EVENTS",
        action="UPDATE_PRICES",
        object_type="event",
        object_id=event.id,
        organizer_id=event.organizer_id,
        event_id=event.id,
        meta={"available_seats": schema.available_seats}
    ):
        event = await lock_event(db, event.id)
        if schema.available_seats < event.available_seats:
            allocated = await categories_crud.allocated_seats(db, event.id)
            if schema.available_seats < allocated:
                raise IllegalStateTransition(
                    f"Cannot reduce available seats to {schema.available_seats}. "
                    f"There are already {allocated} seats allocated. Try updating categories first.",
                    ctx={"event_id": event.id, "requested": schema.available_seats, "allocated": allocated}
                )

        event = await crud.update_event(event, _price_data(schema))
        await db.flush()
        await db.refresh(event)
        return event


async def update_event(
        db: AsyncSession,
        event: Event,
        schema: EventUpdateDTO,
        resolver: LocationResolver
) -> Event:
    """Replace the whole inventory of an event; only allowed while nothing has been sold."""
    async with AuditSpan(
        scope="EVENTS",
        action="UPDATE",
        object_type="event",
        object_id=event.id,
        organizer_id=event.organizer_id,
        event_id=event.id,
        meta={"available_seats": schema.available_seats, "categories": len(schema.categories)}
    ) as span:
        event = await lock_event(db, event.id)
        sold = await tickets_crud.count_sold_tickets(db, event.id)
        if sold > 0:
            raise IllegalStateTransition(
                "Cannot update the event: some tickets have been already reserved/confirmed",
                ctx={"event_id": event.id, "sold_tickets": sold}
            )

        existing = await categories_crud.allocated_seats(db, event.id)
        invalidated = await ticket_pool_service.invalidate_all_tickets(db, event.id)
        if invalidated != existing:
            logger.error("event_id=%s invalidated %d tickets, expected %d", event.id, invalidated, existing)
            raise ConsistencyFault(
                "Invalidated tickets do not match the allocated seats",
                ctx={"event_id": event.id, "expected": existing, "invalidated": invalidated}
            )

        for category_id in await categories_crud.deactivate_categories(db, event.id):
            await token_service.cancel_all_tokens(db, category_id)

        event = await crud.update_event(event, _event_data(schema, resolver))
        try:
            await db.flush()
        except IntegrityError as e:
            raise Conflict("Event short name already in use", ctx={"event_id": event.id}) from e

        await seat_distribution_service.distribute_seats(db, event, schema.categories)
        span.meta["tickets"] = await seat_distribution_service.create_all_tickets_for_event(db, event)
        await db.refresh(event)
        return event
