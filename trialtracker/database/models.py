"""
TRIAL TRACKER - Database Models
================================
SQLAlchemy ORM models for the trial registry.

Models:
- User (Credential Store)
- ClinicalTrial, TrialNote (Trial Store)
"""

from datetime import date, datetime, timezone
from typing import List, Optional
import uuid

from sqlalchemy import (
    Integer, String, DateTime, Date, ForeignKey, Text, Boolean, Index, JSON
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .enums import TrialStatus, UserRole, CLOSED_STATUSES


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# =============================================================================
# AUTHENTICATION
# =============================================================================

class User(Base):
    """User accounts."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # Credentials
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Access
    role: Mapped[str] = mapped_column(String(20), default=UserRole.RESEARCHER.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Dates
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict:
        """Public representation; never includes the password hash."""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'department': self.department,
            'role': self.role,
            'is_active': self.is_active,
            'last_login': self.last_login.isoformat() if self.last_login else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"


# =============================================================================
# CLINICAL TRIALS
# =============================================================================

class ClinicalTrial(Base):
    """Clinical trial record."""
    __tablename__ = "clinical_trials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    trial_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)

    # Description
    trial_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    principal_investigator: Mapped[str] = mapped_column(String(100), nullable=False)
    sponsor: Mapped[str] = mapped_column(String(200), nullable=False)
    therapeutic_area: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    drug_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    primary_endpoint: Mapped[str] = mapped_column(String(500), nullable=False)

    # Classification
    phase: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default=TrialStatus.PLANNING.value, nullable=False, index=True)

    # Schedule
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Enrollment
    estimated_enrollment: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_enrollment: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Free-form lists
    secondary_endpoints: Mapped[List[str]] = mapped_column(JSON, default=list)
    inclusion_criteria: Mapped[List[str]] = mapped_column(JSON, default=list)
    exclusion_criteria: Mapped[List[str]] = mapped_column(JSON, default=list)
    study_locations: Mapped[List[dict]] = mapped_column(JSON, default=list)

    # Ownership
    created_by_id: Mapped[str] = mapped_column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    last_modified_by_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey('users.id'), nullable=True)

    created_by: Mapped["User"] = relationship(foreign_keys=[created_by_id], lazy="joined")
    last_modified_by: Mapped[Optional["User"]] = relationship(foreign_keys=[last_modified_by_id], lazy="joined")
    notes: Mapped[List["TrialNote"]] = relationship(
        back_populates="trial",
        cascade="all, delete-orphan",
        order_by="TrialNote.created_at",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index('ix_clinical_trials_schedule', 'start_date', 'end_date'),
    )

    @property
    def duration_days(self) -> int:
        if self.start_date and self.end_date:
            return abs((self.end_date - self.start_date).days)
        return 0

    @property
    def enrollment_percentage(self) -> int:
        if self.estimated_enrollment:
            return round((self.actual_enrollment or 0) / self.estimated_enrollment * 100)
        return 0

    @property
    def is_ongoing(self) -> bool:
        today = date.today()
        return (
            self.status == TrialStatus.ACTIVE.value
            and self.start_date <= today <= self.end_date
        )

    @property
    def is_overdue(self) -> bool:
        closed = {s.value for s in CLOSED_STATUSES}
        return self.end_date < date.today() and self.status not in closed

    def __repr__(self) -> str:
        return f"<ClinicalTrial {self.trial_id} ({self.phase}, {self.status})>"


class TrialNote(Base):
    """Timestamped note attached to a trial."""
    __tablename__ = "trial_notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    trial_pk: Mapped[str] = mapped_column(
        String(36), ForeignKey('clinical_trials.id', ondelete='CASCADE'), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(String(1000), nullable=False)
    created_by_id: Mapped[str] = mapped_column(String(36), ForeignKey('users.id'), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    trial: Mapped["ClinicalTrial"] = relationship(back_populates="notes")
    created_by: Mapped["User"] = relationship(lazy="joined")


# Columns a caller may set on a trial; everything else is server-managed
EDITABLE_TRIAL_FIELDS = (
    'trial_id', 'trial_name', 'description', 'principal_investigator', 'sponsor',
    'therapeutic_area', 'drug_name', 'primary_endpoint', 'phase', 'status',
    'start_date', 'end_date', 'estimated_enrollment', 'actual_enrollment',
    'secondary_endpoints', 'inclusion_criteria', 'exclusion_criteria', 'study_locations',
)

# Columns covered by the free-text search
SEARCHABLE_TRIAL_FIELDS = (
    'trial_name', 'trial_id', 'description', 'principal_investigator',
    'sponsor', 'therapeutic_area', 'drug_name',
)
