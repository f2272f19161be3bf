"""
Pydantic Models/Schemas for API
================================
Response models for the Clinical Trial Tracker API.

Request bodies are validated by the trialtracker forms so that every
violation is reported together; these models only shape what goes out.
All keys are camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import date, datetime


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# AUTH SCHEMAS
# =============================================================================

class UserResponse(APIModel):
    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    department: Optional[str] = None
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime


class UserSummary(APIModel):
    id: str
    username: str
    first_name: str
    last_name: str
    email: str


class AuthResponse(APIModel):
    message: str
    user: UserResponse


class UserEnvelope(APIModel):
    user: UserResponse


class AuthCheckResponse(APIModel):
    is_authenticated: bool
    user: Optional[UserResponse] = None


class MessageResponse(APIModel):
    message: str


# =============================================================================
# TRIAL SCHEMAS
# =============================================================================

class StudyLocationResponse(APIModel):
    facility: str
    city: str
    country: str


class NoteResponse(APIModel):
    id: str
    content: str
    created_by: Optional[UserSummary] = None
    created_at: datetime


class TrialResponse(APIModel):
    id: str
    trial_id: str
    trial_name: str
    description: str
    principal_investigator: str
    sponsor: str
    therapeutic_area: str
    drug_name: Optional[str] = None
    primary_endpoint: str
    phase: str
    status: str
    start_date: date
    end_date: date
    estimated_enrollment: int
    actual_enrollment: int
    secondary_endpoints: List[str] = []
    inclusion_criteria: List[str] = []
    exclusion_criteria: List[str] = []
    study_locations: List[StudyLocationResponse] = []
    notes: List[NoteResponse] = []
    created_by: Optional[UserSummary] = None
    last_modified_by: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    # Derived
    duration_days: int
    enrollment_percentage: int
    is_ongoing: bool
    is_overdue: bool


class TrialEnvelope(APIModel):
    trial: TrialResponse


class TrialMutationResponse(APIModel):
    message: str
    trial: TrialResponse


class PaginationResponse(APIModel):
    current_page: int
    total_pages: int
    total_trials: int
    has_next_page: bool
    has_prev_page: bool


class TrialListResponse(APIModel):
    trials: List[TrialResponse]
    pagination: PaginationResponse


# =============================================================================
# SYSTEM SCHEMAS
# =============================================================================

class HealthResponse(APIModel):
    status: str
    message: str
    database: str
    environment: str
    timestamp: datetime
