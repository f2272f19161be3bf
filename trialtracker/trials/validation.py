"""
TRIAL TRACKER - Trial Validation
=================================
Field-level and cross-field rules for clinical trial records.

Field checks run through pydantic so every violation is reported at once.
Cross-field checks run separately against the complete candidate record,
which on update is the stored record with the partial payload merged in.
"""

import re
from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BeforeValidator, ConfigDict, Field, field_validator

from ..database.enums import TrialPhase, TrialStatus
from ..database.models import ClinicalTrial, EDITABLE_TRIAL_FIELDS
from ..errors import ValidationError
from ..validation import FormModel, parse_form

TRIAL_ID_PATTERN = re.compile(r'^[A-Z0-9-]+$')
TRIAL_ID_MAX_LENGTH = 50
MAX_ENROLLMENT = 100000


def normalize_trial_id(value: Any) -> Any:
    """Trial IDs are case-insensitive on input and stored uppercase."""
    return value.strip().upper() if isinstance(value, str) else value


def is_trial_id(value: str) -> bool:
    return len(value) <= TRIAL_ID_MAX_LENGTH and bool(TRIAL_ID_PATTERN.match(value))


def parse_calendar_date(value: Any) -> date:
    """Accept ISO 8601 dates or datetimes; keep only the calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            pass
    raise ValueError("must be a valid ISO 8601 date")


CalendarDate = Annotated[date, BeforeValidator(parse_calendar_date)]
Endpoint = Annotated[str, Field(min_length=1, max_length=500)]
Criterion = Annotated[str, Field(min_length=1, max_length=300)]


class StudyLocation(FormModel):
    facility: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)


class TrialForm(FormModel):
    """A complete, field-valid trial record."""

    model_config = ConfigDict(use_enum_values=True)

    trial_id: str = Field(..., min_length=1, max_length=TRIAL_ID_MAX_LENGTH)
    trial_name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    principal_investigator: str = Field(..., min_length=1, max_length=100)
    sponsor: str = Field(..., min_length=1, max_length=200)
    therapeutic_area: str = Field(..., min_length=1, max_length=100)
    drug_name: Optional[str] = Field(None, max_length=100)
    primary_endpoint: str = Field(..., min_length=1, max_length=500)

    phase: TrialPhase
    status: TrialStatus = TrialStatus.PLANNING

    start_date: CalendarDate
    end_date: CalendarDate

    estimated_enrollment: int = Field(..., ge=1, le=MAX_ENROLLMENT)
    actual_enrollment: int = Field(0, ge=0)

    secondary_endpoints: List[Endpoint] = Field(default_factory=list)
    inclusion_criteria: List[Criterion] = Field(default_factory=list)
    exclusion_criteria: List[Criterion] = Field(default_factory=list)
    study_locations: List[StudyLocation] = Field(default_factory=list)

    @field_validator('trial_id', mode='before')
    @classmethod
    def uppercase_trial_id(cls, value):
        return normalize_trial_id(value)

    @field_validator('trial_id')
    @classmethod
    def check_trial_id(cls, value: str) -> str:
        if not TRIAL_ID_PATTERN.match(value):
            raise ValueError("Trial ID can only contain uppercase letters, numbers, and hyphens")
        return value

    @field_validator('drug_name', mode='before')
    @classmethod
    def blank_drug_name(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('estimated_enrollment', 'actual_enrollment', mode='before')
    @classmethod
    def reject_booleans(cls, value):
        # bool is an int subclass and would otherwise coerce to 0 or 1
        if isinstance(value, bool):
            raise ValueError("must be a whole number")
        return value

    def to_columns(self) -> Dict[str, Any]:
        """Values keyed by ClinicalTrial column name."""
        return self.model_dump(mode='python')


class NoteForm(FormModel):
    content: str = Field(..., min_length=1, max_length=1000)


# camelCase wire key -> field name
_FIELD_BY_ALIAS = {field.alias: name for name, field in TrialForm.model_fields.items()}


def canonical_keys(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rename wire keys to field names, dropping keys a caller may not set
    (id, createdBy, lastModifiedBy, notes, timestamps, unknown keys).
    """
    canonical = {}
    for key, value in payload.items():
        name = key if key in TrialForm.model_fields else _FIELD_BY_ALIAS.get(key)
        if name is not None and name in EDITABLE_TRIAL_FIELDS:
            canonical[name] = value
    return canonical


def validate_fields(payload: Dict[str, Any]) -> TrialForm:
    """
    Check each field on its own.

    Raises:
        ValidationError: listing every violated rule
    """
    return parse_form(TrialForm, payload)


def cross_field_violations(record: TrialForm) -> List[str]:
    """Rules spanning more than one field, checked on the whole record."""
    violations = []

    # Date-only granularity: ending the day it starts is not allowed
    if record.end_date <= record.start_date:
        violations.append("End date must be at least one day after start date")

    if record.actual_enrollment > record.estimated_enrollment:
        violations.append(
            f"Actual enrollment ({record.actual_enrollment}) cannot exceed "
            f"estimated enrollment ({record.estimated_enrollment})"
        )

    return violations


def validate_cross_field(record: TrialForm) -> None:
    """
    Raises:
        ValidationError: listing every cross-field rule the record breaks
    """
    violations = cross_field_violations(record)
    if violations:
        raise ValidationError(violations)


def stored_values(trial: ClinicalTrial) -> Dict[str, Any]:
    """Current editable values of a stored trial, keyed by field name."""
    return {name: getattr(trial, name) for name in EDITABLE_TRIAL_FIELDS}


def merge_update(trial: ClinicalTrial, patch: Dict[str, Any]) -> Tuple[TrialForm, Dict[str, Any]]:
    """
    Merge a partial payload onto a stored trial and validate the result whole.

    Returns:
        Tuple of (validated merged record, the canonicalized patch)

    Raises:
        ValidationError: field or cross-field rules broken by the merged record
    """
    if not isinstance(patch, dict):
        raise ValidationError(["Request body must be a JSON object"])

    changes = canonical_keys(patch)
    merged = {**stored_values(trial), **changes}

    record = validate_fields(merged)
    validate_cross_field(record)
    return record, changes
