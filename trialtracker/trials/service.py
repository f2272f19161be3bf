"""
TRIAL TRACKER - Trial Service
==============================
Create, read, update, delete and list clinical trials on behalf of an
authenticated caller.

Every operation resolves the trial, checks ownership, validates, and only
then touches the store, so a rejected request never leaves a partial write.
"""

import math
import uuid
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..auth.authorization import OwnershipPolicy, get_ownership_policy
from ..auth.models import Principal
from ..database.enums import TrialPhase, TrialStatus
from ..database.models import ClinicalTrial, TrialNote
from ..database.repositories import TrialRepository
from ..errors import Conflict, InvalidIdentifier, NotFound, ValidationError
from ..validation import parse_form
from .validation import (
    NoteForm,
    is_trial_id,
    merge_update,
    normalize_trial_id,
    validate_cross_field,
    validate_fields,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

TRIAL_NOT_FOUND = "Clinical trial not found"
DUPLICATE_TRIAL_ID = "A trial with this ID already exists"


@dataclass
class TrialPage:
    """One page of a trial listing."""
    trials: List[ClinicalTrial]
    page: int
    limit: int
    total: int
    pagination: Dict[str, Any] = field(init=False)

    def __post_init__(self):
        self.pagination = {
            "current_page": self.page,
            "total_pages": math.ceil(self.total / self.limit) if self.total else 0,
            "total_trials": self.total,
            "has_next_page": self.page * self.limit < self.total,
            "has_prev_page": self.page > 1,
        }


class TrialService:
    """
    Clinical trial operations.

    Features:
    - Lookup by record id (UUID) or business trial ID
    - Owner-or-admin enforcement on every single-trial operation
    - Whole-record validation on partial updates
    - Owner-scoped, filtered, paginated listing
    """

    def __init__(self, session: Session, policy: Optional[OwnershipPolicy] = None):
        self.trials = TrialRepository(session)
        self.policy = policy or get_ownership_policy()

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def resolve(self, identifier: str) -> ClinicalTrial:
        """
        Find a trial by record id or trial ID.

        Raises:
            InvalidIdentifier: neither a UUID nor a well-formed trial ID
            NotFound: no trial matches
        """
        candidate = identifier.strip() if isinstance(identifier, str) else ""
        trial_id = normalize_trial_id(candidate)
        looks_like_trial_id = bool(trial_id) and is_trial_id(trial_id)

        try:
            record_id = str(uuid.UUID(candidate))
        except ValueError:
            record_id = None

        if record_id is None and not looks_like_trial_id:
            raise InvalidIdentifier("Invalid trial ID format")

        trial = self.trials.get_by_pk(record_id) if record_id else None
        if trial is None and looks_like_trial_id:
            trial = self.trials.get_by_trial_id(trial_id)
        if trial is None:
            raise NotFound(TRIAL_NOT_FOUND)
        return trial

    def get(self, identifier: str, principal: Principal) -> ClinicalTrial:
        """
        Raises:
            InvalidIdentifier, NotFound, Forbidden
        """
        trial = self.resolve(identifier)
        self.policy.enforce(principal, trial.created_by_id,
                            "You do not have permission to view this trial")
        return trial

    def check_trial_id_uniqueness(self, trial_id: str, excluding_record_id: Optional[str] = None) -> None:
        """
        Raises:
            Conflict: another record already holds this trial ID
        """
        if self.trials.trial_id_taken(normalize_trial_id(trial_id), excluding_record_id):
            raise Conflict(DUPLICATE_TRIAL_ID)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create(self, payload: Dict[str, Any], principal: Principal) -> ClinicalTrial:
        """
        Validate and store a new trial owned by the caller.

        Raises:
            ValidationError: field or cross-field rules broken
            Conflict: trial ID already in use
        """
        record = validate_fields(payload)
        validate_cross_field(record)
        self.check_trial_id_uniqueness(record.trial_id)

        trial = ClinicalTrial(
            **record.to_columns(),
            created_by_id=principal.user_id,
            last_modified_by_id=principal.user_id,
        )
        self.trials.create(trial)
        self.trials.commit()
        self.trials.refresh(trial)

        logger.info(f"Trial {trial.trial_id} created by {principal.user_id}")
        return trial

    def update(self, identifier: str, payload: Dict[str, Any], principal: Principal) -> ClinicalTrial:
        """
        Apply a partial update.

        The patch is merged onto the stored record and the merged record is
        validated whole before anything is written.

        Raises:
            InvalidIdentifier, NotFound, Forbidden
            ValidationError: the merged record breaks a rule
            Conflict: the patch moves the trial onto a taken trial ID
        """
        trial = self.resolve(identifier)
        self.policy.enforce(principal, trial.created_by_id,
                            "You do not have permission to update this trial")

        record, changes = merge_update(trial, payload)

        if 'trial_id' in changes and record.trial_id != trial.trial_id:
            self.check_trial_id_uniqueness(record.trial_id, excluding_record_id=trial.id)

        columns = record.to_columns()
        self.trials.update(trial, {
            **{name: columns[name] for name in changes},
            "last_modified_by_id": principal.user_id,
        })
        self.trials.commit()
        self.trials.refresh(trial)

        logger.info(f"Trial {trial.trial_id} updated by {principal.user_id}: {sorted(changes)}")
        return trial

    def remove(self, identifier: str, principal: Principal) -> None:
        """
        Delete a trial and its notes.

        Raises:
            InvalidIdentifier, NotFound, Forbidden
        """
        trial = self.resolve(identifier)
        self.policy.enforce(principal, trial.created_by_id,
                            "You do not have permission to delete this trial")

        trial_id = trial.trial_id
        self.trials.delete(trial)
        self.trials.commit()
        logger.info(f"Trial {trial_id} deleted by {principal.user_id}")

    def add_note(self, identifier: str, fields: Dict[str, Any], principal: Principal) -> TrialNote:
        """
        Attach a note to a trial the caller may access.

        Raises:
            InvalidIdentifier, NotFound, Forbidden
            ValidationError: empty or over-long content
        """
        trial = self.resolve(identifier)
        self.policy.enforce(principal, trial.created_by_id,
                            "You do not have permission to update this trial")

        form = parse_form(NoteForm, fields)
        note = TrialNote(content=form.content, created_by_id=principal.user_id)
        trial.last_modified_by_id = principal.user_id
        self.trials.add_note(trial, note)
        self.trials.commit()
        self.trials.refresh(trial)

        logger.info(f"Note added to trial {trial.trial_id} by {principal.user_id}")
        return note

    # =========================================================================
    # LISTING
    # =========================================================================

    def list_trials(
        self,
        principal: Principal,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        status: Optional[str] = None,
        phase: Optional[str] = None,
        therapeutic_area: Optional[str] = None,
        search: Optional[str] = None,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> TrialPage:
        """
        List the trials visible to the caller.

        Non-admins only ever see trials they created; admins see all.

        Raises:
            ValidationError: bad page, limit, status or phase
        """
        messages = []
        if page < 1:
            messages.append("page: must be at least 1")
        if limit < 1 or limit > max_limit:
            messages.append(f"limit: must be between 1 and {max_limit}")
        if status and status not in TrialStatus.values():
            messages.append(f"status: must be one of {', '.join(TrialStatus.values())}")
        if phase and phase not in TrialPhase.values():
            messages.append(f"phase: must be one of {', '.join(TrialPhase.values())}")
        if messages:
            raise ValidationError(messages)

        trials, total = self.trials.search(
            owner_id=self.policy.list_scope(principal),
            status=status or None,
            phase=phase or None,
            therapeutic_area=therapeutic_area or None,
            text=search.strip() if search and search.strip() else None,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return TrialPage(trials=trials, page=page, limit=limit, total=total)
