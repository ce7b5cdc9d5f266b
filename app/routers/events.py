"""
Events API Router
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_current_user, require_roles
from app.models.event import EventCategory
from app.models.user import User, UserRole
from app.schemas import (
    EventCreate,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
    EventUpdate,
    MessageResponse,
    RegistrationResponse,
)
from app.services.event_service import EventFilters, EventService

router = APIRouter()
settings = get_settings()


@router.post("", response_model=EventDetailResponse, status_code=201)
async def create_event(
    event_data: EventCreate,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event"""
    service = EventService(db)
    event = await service.create_event(current_user, event_data)
    return EventDetailResponse.model_validate(event)


@router.get("", response_model=EventListResponse)
async def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=100),
    category: Optional[EventCategory] = None,
    search: Optional[str] = None,
    upcoming: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """List active events with pagination and filters"""
    service = EventService(db)
    filters = EventFilters(category=category, search=search, upcoming=upcoming)
    result = await service.list_events(filters, page, limit)
    return EventListResponse(
        **result.envelope([EventResponse.model_validate(e) for e in result.items])
    )


@router.get("/user/registered", response_model=List[EventResponse])
async def list_registered_events(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get all active events the current user is registered for"""
    service = EventService(db)
    events = await service.list_registered_for_user(current_user)
    return [EventResponse.model_validate(e) for e in events]


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event(event_id: int, db: AsyncSession = Depends(get_db)):
    """Get a single event"""
    service = EventService(db)
    event = await service.get_event(event_id)
    return EventDetailResponse.model_validate(event)


@router.put("/{event_id}", response_model=EventDetailResponse)
async def update_event(
    event_id: int,
    event_data: EventUpdate,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    db: AsyncSession = Depends(get_db),
):
    """Update an event"""
    service = EventService(db)
    event = await service.update_event(current_user, event_id, event_data)
    return EventDetailResponse.model_validate(event)


@router.post("/{event_id}/register", response_model=RegistrationResponse)
async def register_for_event(
    event_id: int,
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db),
):
    """Register the current student for an event"""
    service = EventService(db)
    event = await service.register(current_user, event_id)
    return RegistrationResponse(
        msg="Successfully registered for the event",
        data=EventDetailResponse.model_validate(event),
    )


@router.delete("/{event_id}/register", response_model=RegistrationResponse)
async def unregister_from_event(
    event_id: int,
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db),
):
    """Unregister the current student from an event"""
    service = EventService(db)
    event = await service.unregister(current_user, event_id)
    return RegistrationResponse(
        msg="Successfully unregistered from the event",
        data=EventDetailResponse.model_validate(event),
    )


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: int,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event"""
    service = EventService(db)
    await service.delete_event(current_user, event_id)
    return MessageResponse(msg="Event removed")
