from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Identity, Text, text, TIMESTAMP
from app.core.database import Base
from datetime import datetime, timezone


class Role(Base):
    __tablename__ = 'roles'
    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)

    users: Mapped[list["User"]] = relationship(
        secondary="user_roles",
        back_populates="roles"
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True),
                                                 default=lambda: datetime.now(timezone.utc),
                                                 server_default=text("timezone('utc', now())"),
                                                 nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    roles: Mapped[list["Role"]] = relationship(secondary="user_roles", back_populates="users", lazy="selectin")
    organizers: Mapped[list["Organizer"]] = relationship(
        back_populates='users',
        secondary='organizers_users',
        lazy="selectin"
    )
