from fastapi import APIRouter, status, Depends, Response
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.events import require_organizer_member, require_event_owner, get_location_resolver
from app.core.geolocation import LocationResolver
from app.domain.events.schemas import EventCreateDTO, EventReadDTO, EventUpdateDTO, EventHeaderUpdateDTO, \
    EventPricesDTO
from app.domain.events.models import Event
from app.services import event_service


router = APIRouter(tags=["events"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]
resolver_dependency = Annotated[LocationResolver, Depends(get_location_resolver)]


@router.post(
    "/organizers/{organizer_id}/events",
    status_code=status.HTTP_201_CREATED,
    response_model=EventReadDTO,
    response_model_exclude_none=True
)
async def create_event(
        organizer_id: Annotated[int, Depends(require_organizer_member)],
        schema: EventCreateDTO,
        db: db_dependency,
        resolver: resolver_dependency,
        response: Response
):
    event = await event_service.create_event(db, organizer_id, schema, resolver)
    response.headers["Location"] = f"/events/{event.id}"
    return event


@router.get(
    "/events/{event_id}",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO,
    response_model_exclude_none=True
)
async def get_event(event: Annotated[Event, Depends(require_event_owner)]):
    return event


@router.patch(
    "/events/{event_id}/header",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO,
    response_model_exclude_none=True
)
async def patch_event_header(
        event: Annotated[Event, Depends(require_event_owner)],
        schema: EventHeaderUpdateDTO,
        db: db_dependency,
        resolver: resolver_dependency
):
    return await event_service.update_event_header(db, event, schema, resolver)


@router.patch(
    "/events/{event_id}/prices",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO,
    response_model_exclude_none=True
)
async def patch_event_prices(
        event: Annotated[Event, Depends(require_event_owner)],
        schema: EventPricesDTO,
        db: db_dependency
):
    return await event_service.update_event_prices(db, event, schema)


@router.put(
    "/events/{event_id}",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO,
    response_model_exclude_none=True
)
async def put_event(
        event: Annotated[Event, Depends(require_event_owner)],
        schema: EventUpdateDTO,
        db: db_dependency,
        resolver: resolver_dependency
):
    return await event_service.update_event(db, event, schema, resolver)
