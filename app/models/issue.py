"""
Issue model and enums
"""
import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow
from app.models.user import User


class IssueStatus(str, enum.Enum):
    """Issue status enum"""
    PENDING = "Pending"
    UNDER_REVIEW = "Under Review"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"
    REJECTED = "Rejected"


class IssueCategory(str, enum.Enum):
    """Issue category enum"""
    ELECTRICAL = "Electrical"
    PLUMBING = "Plumbing"
    STRUCTURAL = "Structural"
    FURNITURE = "Furniture"
    EQUIPMENT = "Equipment"
    NETWORK = "Network"
    SECURITY = "Security"
    CLEANLINESS = "Cleanliness"
    OTHER = "Other"


class Priority(str, enum.Enum):
    """Issue priority enum"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class MediaKind(str, enum.Enum):
    """Kind of uploaded media"""
    IMAGE = "image"
    VIDEO = "video"


class Issue(Base):
    """Issue reported by a campus member"""

    __tablename__ = "issues"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[IssueCategory] = mapped_column(
        Enum(IssueCategory), nullable=False, index=True
    )
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority), default=Priority.MEDIUM, nullable=False
    )
    status: Mapped[IssueStatus] = mapped_column(
        Enum(IssueStatus), default=IssueStatus.PENDING, nullable=False, index=True
    )

    # List of {"kind", "url", "external_id"} references into object storage
    media: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)

    reporter_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assigned_to_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Resolution record, stamped on first entry into Resolved
    resolution_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships
    reporter: Mapped[User] = relationship(foreign_keys=[reporter_id], lazy="selectin")
    assigned_to: Mapped[Optional[User]] = relationship(
        foreign_keys=[assigned_to_id], lazy="selectin"
    )
    resolved_by: Mapped[Optional[User]] = relationship(
        foreign_keys=[resolved_by_id], lazy="selectin"
    )
    comments: Mapped[List["IssueComment"]] = relationship(
        back_populates="issue",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=lambda: [IssueComment.created_at.desc(), IssueComment.id.desc()],
    )

    @property
    def resolution_details(self) -> Optional[Dict[str, Any]]:
        """Resolution record, or None while the issue has never been resolved"""
        if self.resolved_at is None:
            return None
        return {
            "description": self.resolution_description,
            "resolved_at": self.resolved_at,
            "resolved_by": self.resolved_by,
        }

    def __repr__(self) -> str:
        return f"<Issue {self.id} - {self.status.value}>"


class IssueComment(Base):
    """Comment on an issue"""

    __tablename__ = "issue_comments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    issue_id: Mapped[int] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    issue: Mapped[Issue] = relationship(back_populates="comments")
    author: Mapped[User] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<IssueComment {self.id} - Issue {self.issue_id}>"
