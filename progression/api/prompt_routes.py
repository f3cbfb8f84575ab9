"""Freeform prompt attempt endpoint."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DBSession

from auth.middleware.auth_middleware import get_current_user_id
from database import get_db
from progression.api.dependencies import resolve_subject
from progression.services import PromptAttemptService
from shared.models import PromptAttemptRequest, PromptAttemptResponse
from shared.utils.exceptions import BrightStepsException

router = APIRouter(prefix="/prompts", tags=["prompts"])


@router.post("/attempts", response_model=PromptAttemptResponse)
def submit_prompt_attempt(
    request: PromptAttemptRequest,
    user_id: str = Depends(get_current_user_id),
    db: DBSession = Depends(get_db),
):
    """Log a freeform question; XP is capped per hour and repeats earn nothing."""
    try:
        service = PromptAttemptService(db)
        result = service.record_prompt_attempt(
            user_id,
            resolve_subject(request.subject),
            request.prompt,
            request.success,
            request.attempts,
            request.used_hint,
        )
    except BrightStepsException as e:
        raise e.to_http_exception()
    return PromptAttemptResponse(xp_earned=result.xp_earned, reason=result.reason, progress=result.progress)
