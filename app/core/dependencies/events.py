from fastapi import Depends, Request
from typing import Annotated
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import get_current_user_with_roles
from app.core.geolocation import LocationResolver, StaticLocationResolver
from app.domain.users.models import User
from app.domain.events.models import Event
from app.domain.exceptions import NotFound, Forbidden

ADMIN_OR_ORG = get_current_user_with_roles('ADMIN', 'ORGANIZER')


def _is_admin(user: User) -> bool:
    return any(r.name == "ADMIN" for r in user.roles)


async def _ensure_event_owner(event_id: int, db: AsyncSession, user: User) -> Event:
    event = (await db.execute(select(Event).where(Event.id == event_id))).scalars().first()
    if not event:
        raise NotFound("Event not found", ctx={"event_id": event_id})

    if _is_admin(user):
        return event

    if event.organizer_id not in {o.id for o in user.organizers}:
        raise Forbidden("Not allowed", ctx={"event_id": event_id, "reason": "organizer_mismatch"})

    return event


def require_organizer_member(
        organizer_id: int,
        user: Annotated[User, Depends(ADMIN_OR_ORG)]
) -> int:
    if _is_admin(user):
        return organizer_id

    if organizer_id not in {o.id for o in user.organizers}:
        raise Forbidden("Not allowed", ctx={"organizer_id": organizer_id, "reason": "organizer_mismatch"})

    return organizer_id


async def require_event_owner(
        event_id: int,
        db: Annotated[AsyncSession, Depends(get_db)],
        user: Annotated[User, Depends(ADMIN_OR_ORG)]
) -> Event:
    return await _ensure_event_owner(event_id, db, user)


def get_location_resolver(request: Request) -> LocationResolver:
    return getattr(request.app.state, "location_resolver", None) or StaticLocationResolver()
