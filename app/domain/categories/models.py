from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy import Identity, Text, Integer, ForeignKey, CheckConstraint, Boolean, TIMESTAMP, func, text
from app.core.database import Base
from datetime import datetime


class TicketCategory(Base):
    __tablename__ = "ticket_categories"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    inception: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    expiration: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    max_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    access_restricted: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"), default=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    event: Mapped['Event'] = relationship(back_populates='categories', lazy='raise')

    __table_args__ = (
        CheckConstraint("max_tickets >= 0", name="chk_category_max_tickets"),
        CheckConstraint("price_cents >= 0", name="chk_category_price"),
        CheckConstraint("expiration > inception", name="chk_category_time_range"),
    )
