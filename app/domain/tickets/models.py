from sqlalchemy.orm import mapped_column, Mapped
from sqlalchemy import Identity, Integer, ForeignKey, CheckConstraint, TIMESTAMP, Index, Enum as SQLEnum, func
from sqlalchemy.dialects.postgresql import UUID
from app.core.database import Base
from datetime import datetime
from enum import Enum
import uuid as uuid_lib


class TicketStatus(str, Enum):
    FREE = "FREE"
    PENDING = "PENDING"
    ACQUIRED = "ACQUIRED"
    CHECKED_IN = "CHECKED_IN"
    CANCELLED = "CANCELLED"
    INVALIDATED = "INVALIDATED"


# statuses that never count as sold
UNSOLD_STATUSES = (TicketStatus.FREE, TicketStatus.INVALIDATED)


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    uuid: Mapped[uuid_lib.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, unique=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("ticket_categories.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[TicketStatus] = mapped_column(
        SQLEnum(TicketStatus, name="ticket_status"),
        nullable=False,
        server_default=TicketStatus.FREE.value
    )
    original_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    paid_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_tickets_event_category_status", "event_id", "category_id", "status"),
        CheckConstraint("original_price_cents >= 0", name="chk_ticket_original_price"),
        CheckConstraint("paid_price_cents >= 0", name="chk_ticket_paid_price"),
    )
