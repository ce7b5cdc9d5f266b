"""
Campus event model and registrations
"""
import enum
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow
from app.models.user import User

DEFAULT_EVENT_IMAGE = "default-event.jpg"


class EventCategory(str, enum.Enum):
    """Event category enum"""
    ACADEMIC = "Academic"
    CULTURAL = "Cultural"
    SPORTS = "Sports"
    WORKSHOP = "Workshop"
    SEMINAR = "Seminar"
    COMPETITION = "Competition"
    OTHER = "Other"


class Event(Base):
    """Campus event that students can register for"""

    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_events_capacity_positive"),
        CheckConstraint("registered_count <= capacity", name="ck_events_within_capacity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    time_start: Mapped[str] = mapped_column(String(20), nullable=False)
    time_end: Mapped[str] = mapped_column(String(20), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[EventCategory] = mapped_column(
        Enum(EventCategory), nullable=False, index=True
    )

    # Organizer details
    organizer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    organizer_contact: Mapped[str] = mapped_column(String(255), nullable=False)
    organizer_department: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    registration_link: Mapped[str] = mapped_column(String(500), nullable=False)
    image: Mapped[str] = mapped_column(String(500), default=DEFAULT_EVENT_IMAGE, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Size of the registration set, kept in step by the registration statements
    registered_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_by_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships
    created_by: Mapped[User] = relationship(lazy="selectin")
    registered_students: Mapped[List[User]] = relationship(
        secondary="event_registrations",
        lazy="selectin",
        viewonly=True,
        order_by="EventRegistration.created_at",
    )

    @property
    def time(self) -> Dict[str, str]:
        return {"start": self.time_start, "end": self.time_end}

    @property
    def organizer(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.organizer_name,
            "contact": self.organizer_contact,
            "department": self.organizer_department,
        }

    def __repr__(self) -> str:
        return f"<Event {self.id} - {self.title}>"


class EventRegistration(Base):
    """A student's seat at an event"""

    __tablename__ = "event_registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_registrations_event_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<EventRegistration event={self.event_id} user={self.user_id}>"
