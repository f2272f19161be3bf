"""
Clinical Trial Routes
=====================
Trial listing, detail, create, update, delete and notes endpoints.

A trial can be addressed by its record id or by its trial ID.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session

from trialtracker.auth import Principal
from trialtracker.trials import TrialService

from app.config import settings
from app.models.schemas import (
    MessageResponse, PaginationResponse, TrialEnvelope, TrialListResponse,
    TrialMutationResponse, TrialResponse,
)
from app.core.security import get_principal
from app.services.database import get_db

router = APIRouter()


def get_trial_service(db: Session = Depends(get_db)) -> TrialService:
    return TrialService(db)


@router.get("", response_model=TrialListResponse)
def list_trials(
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    status: Optional[str] = Query(None),
    phase: Optional[str] = Query(None),
    therapeutic_area: Optional[str] = Query(None, alias="therapeuticArea"),
    search: Optional[str] = Query(None),
    principal: Principal = Depends(get_principal),
    service: TrialService = Depends(get_trial_service),
):
    """List trials visible to the caller, newest first."""
    result = service.list_trials(
        principal,
        page=page,
        limit=limit,
        status=status,
        phase=phase,
        therapeutic_area=therapeutic_area,
        search=search,
        max_limit=settings.MAX_PAGE_SIZE,
    )
    return TrialListResponse(
        trials=[TrialResponse.model_validate(trial) for trial in result.trials],
        pagination=PaginationResponse(**result.pagination),
    )


@router.get("/{identifier}", response_model=TrialEnvelope)
def get_trial(
    identifier: str,
    principal: Principal = Depends(get_principal),
    service: TrialService = Depends(get_trial_service),
):
    """Get single trial details."""
    trial = service.get(identifier, principal)
    return TrialEnvelope(trial=TrialResponse.model_validate(trial))


@router.post("", response_model=TrialMutationResponse, status_code=status.HTTP_201_CREATED)
def create_trial(
    payload: Dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    service: TrialService = Depends(get_trial_service),
):
    """Create a trial owned by the caller."""
    trial = service.create(payload, principal)
    return TrialMutationResponse(
        message="Clinical trial created successfully",
        trial=TrialResponse.model_validate(trial),
    )


@router.put("/{identifier}", response_model=TrialMutationResponse)
def update_trial(
    identifier: str,
    payload: Dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    service: TrialService = Depends(get_trial_service),
):
    """Partially update a trial; the merged result must stay valid."""
    trial = service.update(identifier, payload, principal)
    return TrialMutationResponse(
        message="Clinical trial updated successfully",
        trial=TrialResponse.model_validate(trial),
    )


@router.delete("/{identifier}", response_model=MessageResponse)
def delete_trial(
    identifier: str,
    principal: Principal = Depends(get_principal),
    service: TrialService = Depends(get_trial_service),
):
    """Delete a trial and its notes."""
    service.remove(identifier, principal)
    return MessageResponse(message="Clinical trial deleted successfully")


@router.post("/{identifier}/notes", response_model=TrialMutationResponse, status_code=status.HTTP_201_CREATED)
def add_note(
    identifier: str,
    payload: Dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    service: TrialService = Depends(get_trial_service),
):
    """Append a note to a trial."""
    note = service.add_note(identifier, payload, principal)
    return TrialMutationResponse(
        message="Note added successfully",
        trial=TrialResponse.model_validate(note.trial),
    )
