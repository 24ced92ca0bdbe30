from fastapi import APIRouter, status, Depends, Response
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.events import require_event_owner
from app.domain.categories.schemas import CategoryCreateDTO, CategoryUpdateDTO, CategoryReadDTO, \
    CategoryInventoryDTO, ReallocationDTO
from app.domain.events.models import Event
from app.services import category_service, seat_distribution_service


router = APIRouter(tags=["categories"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "/events/{event_id}/categories",
    status_code=status.HTTP_200_OK,
    response_model=list[CategoryReadDTO]
)
async def list_categories(event: Annotated[Event, Depends(require_event_owner)], db: db_dependency):
    return await category_service.list_categories(db, event.id)


@router.post(
    "/events/{event_id}/categories",
    status_code=status.HTTP_201_CREATED,
    response_model=CategoryReadDTO
)
async def create_category(
        event: Annotated[Event, Depends(require_event_owner)],
        schema: CategoryCreateDTO,
        db: db_dependency,
        response: Response
):
    category = await category_service.insert_category(db, event, schema)
    response.headers["Location"] = f"/events/{event.id}/categories/{category.id}"
    return category


@router.get(
    "/events/{event_id}/categories/{category_id}",
    status_code=status.HTTP_200_OK,
    response_model=CategoryInventoryDTO
)
async def get_category(
        category_id: int,
        event: Annotated[Event, Depends(require_event_owner)],
        db: db_dependency
):
    return await category_service.load_category_inventory(db, event.id, category_id)


@router.patch(
    "/events/{event_id}/categories/{category_id}",
    status_code=status.HTTP_200_OK,
    response_model=CategoryReadDTO
)
async def patch_category(
        category_id: int,
        event: Annotated[Event, Depends(require_event_owner)],
        schema: CategoryUpdateDTO,
        db: db_dependency
):
    return await category_service.update_category(db, event, category_id, schema)


@router.post(
    "/events/{event_id}/categories/{category_id}/reallocate",
    status_code=status.HTTP_200_OK,
    response_model=list[CategoryReadDTO]
)
async def reallocate_category(
        category_id: int,
        event: Annotated[Event, Depends(require_event_owner)],
        schema: ReallocationDTO,
        db: db_dependency
):
    source, target = await seat_distribution_service.reallocate_tickets(
        db, event, category_id, schema.target_category_id
    )
    return [source, target]
