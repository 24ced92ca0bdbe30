from sqlalchemy import Identity, Text, TIMESTAMP, func
from app.core.database import Base
from sqlalchemy.orm import mapped_column, Mapped, relationship
from datetime import datetime
from app.domain.associations import organizers_users


class Organizer(Base):
    __tablename__ = 'organizers'
    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True),
                                                 server_default=func.now(),
                                                 nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    events: Mapped[list['Event']] = relationship(back_populates='organizer', lazy='selectin')

    users: Mapped[list['User']] = relationship(
        back_populates='organizers',
        secondary=organizers_users,
        lazy='selectin'
    )
