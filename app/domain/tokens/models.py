from sqlalchemy.orm import mapped_column, Mapped
from sqlalchemy import Identity, Text, Integer, ForeignKey, Index, Enum as SQLEnum
from app.core.database import Base
from enum import Enum


class TokenStatus(str, Enum):
    WAITING = "WAITING"
    LOCKED = "LOCKED"
    CANCELLED = "CANCELLED"


class SpecialPriceToken(Base):
    __tablename__ = "special_price_tokens"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("ticket_categories.id", ondelete="CASCADE"), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[TokenStatus] = mapped_column(
        SQLEnum(TokenStatus, name="token_status"),
        nullable=False,
        server_default=TokenStatus.WAITING.value
    )

    __table_args__ = (
        Index("ix_special_price_tokens_category_status", "category_id", "status"),
    )
