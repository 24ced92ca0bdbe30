import logging
import secrets
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.categories.models import TicketCategory
from app.domain.tokens import crud
from app.domain.tokens.models import TokenStatus
from app.services.batching import build_batch

logger = logging.getLogger("app.inventory.tokens")

TOKEN_CODE_BYTES = 24


def _new_code() -> str:
    return secrets.token_urlsafe(TOKEN_CODE_BYTES)


async def generate_tokens(db: AsyncSession, category: TicketCategory, count: int) -> int:
    rows = build_batch(count, lambda: {
        "code": _new_code(),
        "category_id": category.id,
        "price_cents": category.price_cents,
        "status": TokenStatus.WAITING,
    })
    await crud.bulk_insert_tokens(db, rows)
    logger.info("Generated %d tokens for category_id=%s", len(rows), category.id)
    return len(rows)


async def cancel_all_tokens(db: AsyncSession, category_id: int) -> int:
    cancelled = await crud.cancel_category_tokens(db, category_id, (TokenStatus.WAITING, TokenStatus.LOCKED))
    logger.info("Cancelled %d tokens for category_id=%s", cancelled, category_id)
    return cancelled


async def lock_tokens_for_reduction(db: AsyncSession, category_id: int, count: int) -> list[int]:
    if count <= 0:
        return []
    return await crud.lock_waiting_tokens(db, category_id, count)


async def cancel_tokens(db: AsyncSession, token_ids: list[int]) -> int:
    if not token_ids:
        return 0
    return await crud.cancel_locked_tokens(db, token_ids)


async def cancel_expired_tokens(db: AsyncSession, category_id: int) -> int:
    cancelled = await crud.cancel_category_tokens(db, category_id, (TokenStatus.WAITING,))
    if not cancelled:
        logger.debug("No waiting tokens left to cancel for category_id=%s", category_id)
    return cancelled
