"""Progress and subject lookup endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DBSession

from auth.middleware.auth_middleware import get_current_user_id
from database import get_db
from progression.api.dependencies import resolve_subject
from progression.services import ProgressService
from shared.models import ProgressResponse, ProgressSnapshot, SubjectResponse
from shared.utils.exceptions import BrightStepsException

router = APIRouter(tags=["progress"])


@router.get("/subjects", response_model=SubjectResponse)
def get_subject_id(name: str = Query(..., min_length=1)):
    """Stable id for a subject name."""
    try:
        subject = resolve_subject(name)
    except BrightStepsException as e:
        raise e.to_http_exception()
    return SubjectResponse(id=int(subject), name=subject.label)


@router.get("/progress", response_model=ProgressResponse)
def get_all_progress(
    user_id: str = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """XP and level for every subject (parent dashboard)."""
    try:
        return ProgressResponse(subjects=ProgressService(db).get_all_progress(user_id))
    except BrightStepsException as e:
        raise e.to_http_exception()


@router.get("/progress/{subject}", response_model=ProgressSnapshot)
def get_progress(
    subject: str,
    user_id: str = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """XP, level and in-level progress for one subject."""
    try:
        return ProgressService(db).get_progress(user_id, resolve_subject(subject))
    except BrightStepsException as e:
        raise e.to_http_exception()
