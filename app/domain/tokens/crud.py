from typing import Iterable
from sqlalchemy import select, update, insert, func
from sqlalchemy.ext.asyncio import AsyncSession
from .models import SpecialPriceToken, TokenStatus


async def bulk_insert_tokens(db: AsyncSession, rows: list[dict]) -> None:
    if rows:
        await db.execute(insert(SpecialPriceToken), rows)


async def cancel_category_tokens(db: AsyncSession, category_id: int, statuses: Iterable[TokenStatus]) -> int:
    result = await db.execute(
        update(SpecialPriceToken)
        .where(SpecialPriceToken.category_id == category_id, SpecialPriceToken.status.in_(list(statuses)))
        .values(status=TokenStatus.CANCELLED)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


async def lock_waiting_tokens(db: AsyncSession, category_id: int, limit: int) -> list[int]:
    ids = await db.scalars(
        select(SpecialPriceToken.id)
        .where(SpecialPriceToken.category_id == category_id, SpecialPriceToken.status == TokenStatus.WAITING)
        .order_by(SpecialPriceToken.id)
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    ids = list(ids)
    if ids:
        await db.execute(
            update(SpecialPriceToken)
            .where(SpecialPriceToken.id.in_(ids))
            .values(status=TokenStatus.LOCKED)
            .execution_options(synchronize_session=False)
        )
    return ids


async def cancel_locked_tokens(db: AsyncSession, token_ids: list[int]) -> int:
    result = await db.execute(
        update(SpecialPriceToken)
        .where(SpecialPriceToken.id.in_(token_ids), SpecialPriceToken.status == TokenStatus.LOCKED)
        .values(status=TokenStatus.CANCELLED)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


async def count_tokens_by_status(db: AsyncSession, category_id: int) -> dict[TokenStatus, int]:
    rows = await db.execute(
        select(SpecialPriceToken.status, func.count(SpecialPriceToken.id))
        .where(SpecialPriceToken.category_id == category_id)
        .group_by(SpecialPriceToken.status)
    )
    return {status: int(cnt) for status, cnt in rows.all()}
