"""
TRIAL TRACKER - Data Repositories
==================================
Data access layer for users and clinical trials.

Uniqueness is enforced by the database; an IntegrityError raised on flush is
translated into the same Conflict the services raise from their pre-checks.
"""

import logging
from typing import List, Optional, Dict, Any, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..errors import Conflict
from .models import User, ClinicalTrial, TrialNote, SEARCHABLE_TRIAL_FIELDS

logger = logging.getLogger(__name__)


class BaseRepository:
    """Base repository with common session operations."""

    conflict_message = "Resource already exists"

    def __init__(self, session: Session):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy session owned by the caller
        """
        self.session = session

    def commit(self) -> None:
        """Commit current transaction."""
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Integrity error on commit: {e.orig}")
            raise Conflict(self.conflict_message) from e

    def rollback(self) -> None:
        """Rollback current transaction."""
        self.session.rollback()

    def refresh(self, instance) -> None:
        """Reload an instance and its eager relationships from the database."""
        self.session.refresh(instance)

    def flush(self) -> None:
        """Flush pending changes, translating constraint violations."""
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Integrity error on flush: {e.orig}")
            raise Conflict(self.conflict_message) from e


class UserRepository(BaseRepository):
    """Repository for User operations (the Credential Store)."""

    conflict_message = "A user with this username or email already exists"

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.query(User).filter(User.username == username).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == email.lower()).first()

    def find_by_email_or_username(self, identifier: str) -> Optional[User]:
        """Look a user up by either unique key."""
        return self.session.query(User).filter(
            or_(User.username == identifier, User.email == identifier.lower())
        ).first()

    def create(self, user: User) -> User:
        self.session.add(user)
        self.flush()
        return user

    def update(self, user: User, data: Dict[str, Any]) -> User:
        for key, value in data.items():
            if hasattr(user, key):
                setattr(user, key, value)
        self.flush()
        return user

    def count(self) -> int:
        return self.session.query(func.count(User.id)).scalar()


class TrialRepository(BaseRepository):
    """Repository for ClinicalTrial operations (the Trial Store)."""

    conflict_message = "A trial with this ID already exists"

    def get_by_pk(self, record_id: str) -> Optional[ClinicalTrial]:
        """Get trial by record identifier."""
        return self.session.get(ClinicalTrial, record_id)

    def get_by_trial_id(self, trial_id: str) -> Optional[ClinicalTrial]:
        """Get trial by its (normalized) business identifier."""
        return self.session.query(ClinicalTrial).filter(ClinicalTrial.trial_id == trial_id).first()

    def trial_id_taken(self, trial_id: str, excluding_pk: Optional[str] = None) -> bool:
        """Whether another record already holds this trial ID."""
        query = self.session.query(ClinicalTrial.id).filter(ClinicalTrial.trial_id == trial_id)
        if excluding_pk is not None:
            query = query.filter(ClinicalTrial.id != excluding_pk)
        return query.first() is not None

    def search(
        self,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        phase: Optional[str] = None,
        therapeutic_area: Optional[str] = None,
        text: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[ClinicalTrial], int]:
        """
        Filtered, paginated trial listing, newest first.

        Args:
            owner_id: Restrict to trials created by this user (None = all)
            status: Exact status match
            phase: Exact phase match
            therapeutic_area: Case-insensitive substring on therapeutic area
            text: Case-insensitive substring across the searchable columns
            limit: Page size
            offset: Rows to skip

        Returns:
            Tuple of (trials on this page, total matching trials)
        """
        query = self.session.query(ClinicalTrial)

        if owner_id is not None:
            query = query.filter(ClinicalTrial.created_by_id == owner_id)
        if status:
            query = query.filter(ClinicalTrial.status == status)
        if phase:
            query = query.filter(ClinicalTrial.phase == phase)
        if therapeutic_area:
            query = query.filter(_icontains(ClinicalTrial.therapeutic_area, therapeutic_area))
        if text:
            query = query.filter(or_(*[
                _icontains(getattr(ClinicalTrial, column), text)
                for column in SEARCHABLE_TRIAL_FIELDS
            ]))

        total = query.order_by(None).count()
        trials = (
            query.options(selectinload(ClinicalTrial.notes))
            .order_by(ClinicalTrial.created_at.desc(), ClinicalTrial.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return trials, total

    def create(self, trial: ClinicalTrial) -> ClinicalTrial:
        self.session.add(trial)
        self.flush()
        return trial

    def update(self, trial: ClinicalTrial, data: Dict[str, Any]) -> ClinicalTrial:
        for key, value in data.items():
            if hasattr(trial, key):
                setattr(trial, key, value)
        self.flush()
        return trial

    def add_note(self, trial: ClinicalTrial, note: TrialNote) -> TrialNote:
        trial.notes.append(note)
        self.flush()
        return note

    def delete(self, trial: ClinicalTrial) -> None:
        self.session.delete(trial)
        self.flush()

    def count(self) -> int:
        return self.session.query(func.count(ClinicalTrial.id)).scalar()


def _icontains(column, value: str):
    """Case-insensitive literal substring match (LIKE wildcards escaped)."""
    return column.icontains(value, autoescape=True)
