"""
Pydantic schemas for API validation
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.event import EventCategory
from app.models.issue import IssueCategory, IssueStatus, MediaKind, Priority
from app.models.user import UserRole


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ============ Shared Schemas ============

class PaginationMeta(BaseModel):
    """Pagination block of a list envelope"""
    current: int
    limit: int
    pages: int


class MessageResponse(BaseModel):
    """Schema for a plain acknowledgement"""
    success: bool = True
    msg: str


class DistributionItem(BaseModel):
    """Count of records sharing one value"""
    key: Optional[str]
    count: int


class MonthlyCount(BaseModel):
    """Count of records created in one calendar month"""
    year: int
    month: int
    count: int


# ============ User Schemas ============

class UserSummary(BaseModel):
    """Display fields of a referenced user"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    role: UserRole


class StudentSummary(BaseModel):
    """Display fields of a reporting or registered student"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    student_id: Optional[str] = None
    department: Optional[str] = None


class UserResponse(BaseModel):
    """Schema for user response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: UserRole
    student_id: Optional[str]
    department: Optional[str]
    created_at: datetime


class UserListResponse(BaseModel):
    """Schema for paginated user list"""
    success: bool = True
    count: int
    total: int
    pagination: PaginationMeta
    data: List[UserResponse]


class RoleUpdate(BaseModel):
    """Schema for changing a user's role"""
    role: UserRole


# ============ Issue Schemas ============

class MediaReference(BaseModel):
    """Reference to a file held in object storage"""
    kind: MediaKind
    url: str
    external_id: str


class IssueCreate(BaseModel):
    """Schema for creating an issue"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    location: str = Field(..., min_length=1, max_length=255)
    category: IssueCategory
    priority: Optional[Priority] = None
    media: List[MediaReference] = []


class IssueUpdate(BaseModel):
    """Schema for staff updates to an issue"""
    status: Optional[IssueStatus] = None
    priority: Optional[Priority] = None
    assigned_to: Optional[int] = None
    resolution_details: Optional[str] = Field(None, max_length=1000)


class CommentCreate(BaseModel):
    """Schema for adding a comment"""
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    """Schema for comment response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    author: UserSummary
    created_at: datetime


class ResolutionDetails(BaseModel):
    """Resolution record of an issue"""
    model_config = ConfigDict(from_attributes=True)

    description: Optional[str]
    resolved_at: datetime
    resolved_by: Optional[UserSummary]


class IssueResponse(BaseModel):
    """Schema for issue response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    location: str
    category: IssueCategory
    priority: Priority
    status: IssueStatus
    media: List[MediaReference]
    reporter: StudentSummary
    assigned_to: Optional[UserSummary]
    resolution_details: Optional[ResolutionDetails]
    created_at: datetime
    updated_at: datetime


class IssueDetailResponse(IssueResponse):
    """Schema for issue response with comments"""
    comments: List[CommentResponse] = []


class IssueListResponse(BaseModel):
    """Schema for paginated issue list"""
    success: bool = True
    count: int
    total: int
    pagination: PaginationMeta
    data: List[IssueResponse]


# ============ Event Schemas ============

class EventTime(BaseModel):
    """Start and end time of an event"""
    start: str = Field(..., min_length=1, max_length=20)
    end: str = Field(..., min_length=1, max_length=20)


class EventTimeUpdate(BaseModel):
    """Partial update of an event's time window"""
    start: Optional[str] = Field(None, min_length=1, max_length=20)
    end: Optional[str] = Field(None, min_length=1, max_length=20)


class Organizer(BaseModel):
    """Organizer of an event"""
    name: str = Field(..., min_length=1, max_length=255)
    contact: str = Field(..., min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=255)


class OrganizerUpdate(BaseModel):
    """Partial update of an event's organizer"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact: Optional[str] = Field(None, min_length=1, max_length=255)
    department: Optional[str] = Field(None, max_length=255)


class EventCreate(BaseModel):
    """Schema for creating an event"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=2000)
    date: datetime
    time: EventTime
    location: str = Field(..., min_length=1, max_length=255)
    category: EventCategory
    organizer: Organizer
    registration_link: str = Field(..., min_length=1, max_length=500)
    image: Optional[str] = Field(None, max_length=500)
    capacity: int = Field(..., gt=0)
    is_active: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Treat naive dates as UTC"""
        return _as_utc(v)


class EventUpdate(BaseModel):
    """Schema for updating an event"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    date: Optional[datetime] = None
    time: Optional[EventTimeUpdate] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[EventCategory] = None
    organizer: Optional[OrganizerUpdate] = None
    registration_link: Optional[str] = Field(None, min_length=1, max_length=500)
    image: Optional[str] = Field(None, max_length=500)
    capacity: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive dates as UTC"""
        return _as_utc(v) if v is not None else v


class EventResponse(BaseModel):
    """Schema for event response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    date: datetime
    time: EventTime
    location: str
    category: EventCategory
    organizer: Organizer
    registration_link: str
    image: str
    capacity: int
    registered_count: int
    is_active: bool
    created_by: UserSummary
    created_at: datetime
    updated_at: datetime


class EventDetailResponse(EventResponse):
    """Schema for event response with registered students"""
    registered_students: List[StudentSummary] = []


class EventListResponse(BaseModel):
    """Schema for paginated event list"""
    success: bool = True
    count: int
    total: int
    pagination: PaginationMeta
    data: List[EventResponse]


class RegistrationResponse(BaseModel):
    """Schema for registration changes"""
    success: bool = True
    msg: str
    data: EventDetailResponse


# ============ Statistics Schemas ============

class DashboardCounts(BaseModel):
    """Headline counts for the admin dashboard"""
    total_issues: int
    pending_issues: int
    in_progress_issues: int
    resolved_issues: int
    total_users: int
    total_events: int
    upcoming_events: int


class DashboardData(BaseModel):
    """Admin dashboard payload"""
    counts: DashboardCounts
    recent_issues: List[IssueResponse]
    category_distribution: List[DistributionItem]
    status_distribution: List[DistributionItem]
    monthly_issues: List[MonthlyCount]


class DashboardResponse(BaseModel):
    success: bool = True
    data: DashboardData


class IssueStats(BaseModel):
    """Issue resolution statistics"""
    average_resolution_time: float
    average_resolution_time_in_hours: float
    resolution_rate: float
    department_distribution: List[DistributionItem]


class IssueStatsResponse(BaseModel):
    success: bool = True
    data: IssueStats


class EventStats(BaseModel):
    """Event registration statistics"""
    total_events: int
    average_registration_rate: float
    category_distribution: List[DistributionItem]
    monthly_events: List[MonthlyCount]


class EventStatsResponse(BaseModel):
    success: bool = True
    data: EventStats


# ============ Upload Schemas ============

class UploadResponse(BaseModel):
    """Schema for a single upload"""
    success: bool = True
    data: MediaReference


class UploadManyResponse(BaseModel):
    """Schema for a batch upload"""
    success: bool = True
    data: List[MediaReference]
