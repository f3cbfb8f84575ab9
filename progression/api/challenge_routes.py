"""Challenge lifecycle and attempt endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DBSession

from auth.middleware.auth_middleware import get_current_user_id
from database import get_db
from progression.api.dependencies import get_prompt_generator, resolve_subject
from progression.services import (
    AttemptService,
    ChallengePromptGenerator,
    ChallengeService,
    SubmissionService,
)
from shared.models import (
    ActiveChallengeResponse,
    AnsweredResponse,
    ChallengeAttemptRequest,
    ChallengeAttemptResponse,
    ChallengeView,
    CompletedLevelsResponse,
)
from shared.utils.constants import MAX_DIFFICULTY, MIN_DIFFICULTY
from shared.utils.exceptions import BrightStepsException

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.get("", response_model=List[ChallengeView])
def list_challenges(
    subject: str,
    min_difficulty: int = Query(MIN_DIFFICULTY, ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY),
    max_difficulty: int = Query(MAX_DIFFICULTY, ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY),
    db: DBSession = Depends(get_db),
):
    """Stored challenges for a subject within a difficulty band."""
    try:
        service = ChallengeService(db)
        return service.list_challenges(resolve_subject(subject), min_difficulty, max_difficulty)
    except BrightStepsException as e:
        raise e.to_http_exception()


@router.post("/attempts", response_model=ChallengeAttemptResponse)
def submit_challenge_attempt(
    request: ChallengeAttemptRequest,
    user_id: str = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
    generator: ChallengePromptGenerator = Depends(get_prompt_generator),
):
    """Record a resolved challenge attempt; a fresh correct answer also returns the next challenge."""
    try:
        service = SubmissionService(db, generator)
        result, next_challenge = service.submit_challenge_attempt(
            user_id,
            request.challenge_id,
            request.success,
            request.attempts,
            request.used_hint,
        )
    except BrightStepsException as e:
        raise e.to_http_exception()

    return ChallengeAttemptResponse(
        xp_earned=result.xp_earned,
        duplicate=result.duplicate,
        reason=result.reason,
        progress=result.progress,
        next_challenge=next_challenge,
    )


@router.get("/{subject}/active", response_model=ActiveChallengeResponse)
def get_active_challenge(
    subject: str,
    user_id: str = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """The challenge currently shown for a subject (null before the first one)."""
    try:
        challenge = ChallengeService(db).get_active_challenge(user_id, resolve_subject(subject))
    except BrightStepsException as e:
        raise e.to_http_exception()
    return ActiveChallengeResponse(challenge=challenge)


@router.post("/{subject}/advance", response_model=ChallengeView)
def advance_challenge(
    subject: str,
    user_id: str = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
    generator: ChallengePromptGenerator = Depends(get_prompt_generator),
):
    """Generate and activate the next challenge for a subject."""
    try:
        service = ChallengeService(db, generator=generator)
        return service.advance_challenge(user_id, resolve_subject(subject))
    except BrightStepsException as e:
        raise e.to_http_exception()


@router.get("/{subject}/completed-levels", response_model=CompletedLevelsResponse)
def get_completed_levels(
    subject: str,
    user_id: str = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Difficulties the user has solved at least once."""
    try:
        levels = AttemptService(db).completed_levels(user_id, resolve_subject(subject))
    except BrightStepsException as e:
        raise e.to_http_exception()
    return CompletedLevelsResponse(completed_levels=levels)


@router.get("/{challenge_id}/answered", response_model=AnsweredResponse)
def has_answered(
    challenge_id: int,
    user_id: str = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Whether the user already has an attempt on record for a challenge."""
    try:
        answered = AttemptService(db).has_answered(user_id, challenge_id)
    except BrightStepsException as e:
        raise e.to_http_exception()
    return AnsweredResponse(already_answered=answered)
