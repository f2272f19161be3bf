"""
TRIAL TRACKER - Trials Module
==============================
Validation and lifecycle operations for clinical trial records.
"""

from .service import TrialService, TrialPage, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .validation import (
    TrialForm,
    StudyLocation,
    NoteForm,
    validate_fields,
    validate_cross_field,
    merge_update,
    normalize_trial_id,
)

__all__ = [
    'TrialService',
    'TrialPage',
    'DEFAULT_PAGE_SIZE',
    'MAX_PAGE_SIZE',
    'TrialForm',
    'StudyLocation',
    'NoteForm',
    'validate_fields',
    'validate_cross_field',
    'merge_update',
    'normalize_trial_id',
]
