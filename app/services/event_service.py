"""
Event Service - Business logic for campus events and registrations
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.exceptions import BadRequest, Forbidden, NotFound
from app.models.event import DEFAULT_EVENT_IMAGE, Event, EventCategory, EventRegistration
from app.models.user import User, UserRole
from app.permissions import is_staff
from app.schemas import EventCreate, EventUpdate
from app.services.pagination import LIKE_ESCAPE, Page, paginate, substring_pattern

logger = logging.getLogger(__name__)


@dataclass
class EventFilters:
    """Optional filters for listing events"""
    category: Optional[EventCategory] = None
    search: Optional[str] = None
    upcoming: bool = False


class EventService:
    """Service for event operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_event(self, event_id: int) -> Event:
        event = await self.db.get(Event, event_id)
        if not event:
            raise NotFound("Event")
        return event

    async def _is_registered(self, event_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            select(EventRegistration.id).where(
                EventRegistration.event_id == event_id,
                EventRegistration.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def create_event(self, caller: User, data: EventCreate) -> Event:
        """Create a new event owned by ``caller``"""
        if not is_staff(caller.role):
            raise Forbidden("Not authorized to create events")

        event = Event(
            title=data.title,
            description=data.description,
            date=data.date,
            time_start=data.time.start,
            time_end=data.time.end,
            location=data.location,
            category=data.category,
            organizer_name=data.organizer.name,
            organizer_contact=data.organizer.contact,
            organizer_department=data.organizer.department,
            registration_link=data.registration_link,
            image=data.image or DEFAULT_EVENT_IMAGE,
            capacity=data.capacity,
            registered_count=0,
            is_active=data.is_active if data.is_active is not None else True,
            created_by=caller,
        )

        self.db.add(event)
        await self.db.commit()
        await self.db.refresh(event)

        logger.info("Event %s created by user %s", event.id, caller.id)
        return event

    async def list_events(self, filters: EventFilters, page: int, limit: int) -> Page:
        """List active events, soonest first"""
        query = select(Event).where(Event.is_active == True)  # noqa: E712

        if filters.category:
            query = query.where(Event.category == filters.category)
        if filters.search:
            search_filter = substring_pattern(filters.search)
            query = query.where(
                or_(
                    Event.title.ilike(search_filter, escape=LIKE_ESCAPE),
                    Event.description.ilike(search_filter, escape=LIKE_ESCAPE),
                    Event.location.ilike(search_filter, escape=LIKE_ESCAPE),
                )
            )
        if filters.upcoming:
            query = query.where(Event.date >= utcnow())

        query = query.order_by(Event.date.asc(), Event.id.asc())
        return await paginate(self.db, query, page, limit)

    async def get_event(self, event_id: int) -> Event:
        """Get a single event"""
        return await self._get_event(event_id)

    async def update_event(self, caller: User, event_id: int, data: EventUpdate) -> Event:
        """Apply a partial update; time and organizer merge field by field"""
        if not is_staff(caller.role):
            raise Forbidden("Not authorized to update events")

        event = await self._get_event(event_id)

        scalar_fields = data.model_dump(exclude_unset=True, exclude={"time", "organizer"})
        if scalar_fields.get("capacity") is not None and scalar_fields["capacity"] < event.registered_count:
            raise BadRequest(
                f"Capacity cannot be lower than the {event.registered_count} registered students"
            )

        for key, value in scalar_fields.items():
            # Required columns cannot be cleared with an explicit null
            if value is None and key != "image":
                continue
            if key == "image" and value is None:
                value = DEFAULT_EVENT_IMAGE
            setattr(event, key, value)

        if data.time is not None:
            for key, value in data.time.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(event, f"time_{key}", value)

        if data.organizer is not None:
            for key, value in data.organizer.model_dump(exclude_unset=True).items():
                if value is None and key != "department":
                    continue
                setattr(event, f"organizer_{key}", value)

        event.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(event)

        logger.info("Event %s updated by user %s", event_id, caller.id)
        return event

    async def register(self, caller: User, event_id: int) -> Event:
        """Register a student, taking a seat atomically"""
        if caller.role != UserRole.STUDENT:
            raise Forbidden("Only students can register for events")

        await self._get_event(event_id)

        if await self._is_registered(event_id, caller.id):
            raise BadRequest("You are already registered for this event")

        now = utcnow()
        # The seat is taken only while every precondition still holds
        result = await self.db.execute(
            update(Event)
            .where(
                Event.id == event_id,
                Event.is_active == True,  # noqa: E712
                Event.date >= now,
                Event.registered_count < Event.capacity,
            )
            .values(registered_count=Event.registered_count + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            raise BadRequest(await self._registration_refusal(event_id, now))

        self.db.add(EventRegistration(event_id=event_id, user_id=caller.id, created_at=now))
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent request registered the same student first
            await self.db.rollback()
            raise BadRequest("You are already registered for this event")

        event = await self._get_event(event_id)
        await self.db.refresh(event)

        logger.info("User %s registered for event %s", caller.id, event_id)
        return event

    async def _registration_refusal(self, event_id: int, now) -> str:
        """Explain why the conditional seat update matched nothing"""
        result = await self.db.execute(
            select(
                Event.is_active,
                Event.date >= now,
                Event.registered_count,
                Event.capacity,
            ).where(Event.id == event_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFound("Event")

        is_active, is_upcoming, registered_count, capacity = row
        if not is_active:
            reason = "This event is no longer active"
        elif not is_upcoming:
            reason = "This event has already passed"
        else:
            reason = "This event has reached its capacity"

        logger.warning(
            "Registration for event %s refused: %s (%s/%s)",
            event_id, reason, registered_count, capacity,
        )
        return reason

    async def unregister(self, caller: User, event_id: int) -> Event:
        """Release a student's seat"""
        if caller.role != UserRole.STUDENT:
            raise Forbidden("Only students can unregister from events")

        await self._get_event(event_id)

        result = await self.db.execute(
            delete(EventRegistration)
            .where(
                EventRegistration.event_id == event_id,
                EventRegistration.user_id == caller.id,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise BadRequest("You are not registered for this event")

        await self.db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(registered_count=Event.registered_count - 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        event = await self._get_event(event_id)
        await self.db.refresh(event)

        logger.info("User %s unregistered from event %s", caller.id, event_id)
        return event

    async def list_registered_for_user(self, caller: User) -> List[Event]:
        """Active events the caller is registered for, soonest first"""
        result = await self.db.execute(
            select(Event)
            .join(EventRegistration, EventRegistration.event_id == Event.id)
            .where(
                EventRegistration.user_id == caller.id,
                Event.is_active == True,  # noqa: E712
            )
            .order_by(Event.date.asc(), Event.id.asc())
        )
        return list(result.scalars().all())

    async def delete_event(self, caller: User, event_id: int) -> None:
        """Permanently remove an event and its registrations"""
        if caller.role != UserRole.ADMIN:
            raise Forbidden("Not authorized to delete events")

        event = await self._get_event(event_id)
        await self.db.execute(
            delete(EventRegistration)
            .where(EventRegistration.event_id == event_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(event)
        await self.db.commit()

        logger.info("Event %s deleted by user %s", event_id, caller.id)
