from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy import Identity, Text, String, Integer, ForeignKey, CheckConstraint, Boolean, TIMESTAMP, Numeric, \
    func, text
from app.core.database import Base
from datetime import datetime
from decimal import Decimal


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    organizer_id: Mapped[int] = mapped_column(
        ForeignKey("organizers.id", ondelete='RESTRICT'),
        nullable=False,
        index=True
    )
    short_name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[str | None] = mapped_column(Text, nullable=True)
    longitude: Mapped[str | None] = mapped_column(Text, nullable=True)
    time_zone: Mapped[str] = mapped_column(Text, nullable=False)
    event_start: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    event_end: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    regular_price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    available_seats: Mapped[int] = mapped_column(Integer, nullable=False)
    vat_included: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    vat_rate: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False)
    free_of_charge: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    organizer: Mapped['Organizer'] = relationship(back_populates='events', lazy='selectin')
    categories: Mapped[list['TicketCategory']] = relationship(back_populates='event', lazy='raise')

    __table_args__ = (
        CheckConstraint("event_end > event_start", name="chk_event_time_range"),
        CheckConstraint("available_seats >= 0", name="chk_event_available_seats"),
        CheckConstraint("regular_price_cents >= 0", name="chk_event_regular_price"),
        CheckConstraint("vat_rate >= 1 AND vat_rate <= 2", name="chk_event_vat_rate"),
    )
