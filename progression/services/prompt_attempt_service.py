"""Freeform prompt attempts: rate-capped XP outside the challenge flow."""

import json
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from config import get_settings
from progression.repositories import PromptAttemptRepository
from progression.services.progress_service import ProgressService
from progression.xp_policy import freeform_award
from shared.models.domain import AttemptResult, PromptHistoryEntry, Subject
from shared.utils.exceptions import StorageException
from shared.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


class PromptAttemptService:
    """
    Logs freeform questions and awards capped XP.

    The cap and the repetition guard look at every freeform prompt the
    user sent in the trailing window, whatever the subject. A successful
    prompt locks all of the user's progress rows before reading that
    window, so parallel requests cannot both spend the same headroom.
    """

    def __init__(
        self,
        db: DBSession,
        clock: Callable[[], datetime] = utc_now,
        xp_per_prompt: Optional[int] = None,
        cap: Optional[int] = None,
        window_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.db = db
        self.clock = clock
        self.xp_per_prompt = xp_per_prompt if xp_per_prompt is not None else settings.freeform_xp_per_prompt
        self.cap = cap if cap is not None else settings.freeform_xp_cap
        self.window_minutes = window_minutes if window_minutes is not None else settings.freeform_window_minutes
        self.prompts = PromptAttemptRepository(db)
        self.progress = ProgressService(db)

    def record_prompt_attempt(
        self,
        user_id: str,
        subject: Subject,
        prompt: str,
        success: bool,
        attempts: int = 1,
        used_hint: bool = False,
    ) -> AttemptResult:
        """
        Append the prompt to the log and award whatever the policy allows.

        Raises:
            StorageException: Any database failure; neither the log row nor XP is committed
        """
        now = self.clock()
        window_start = now - timedelta(minutes=self.window_minutes)
        try:
            if success:
                # Concurrent successes for one user queue on these locks, so
                # each reads the window only after the previous one committed.
                self.progress.ensure_row(user_id, subject)
                self.progress.lock_user_rows(user_id)

            history = [
                PromptHistoryEntry(prompt=row.prompt, xp_earned=row.xp_earned, timestamp=row.timestamp)
                for row in self.prompts.list_since(user_id, window_start)
            ]
            award = freeform_award(
                success,
                prompt,
                history,
                now,
                xp_per_prompt=self.xp_per_prompt,
                cap=self.cap,
                window_minutes=self.window_minutes,
            )
            self.prompts.add(user_id, subject, prompt, success, attempts, used_hint, award.xp_earned, now)
            if award.xp_earned > 0:
                progress = self.progress.apply_xp(user_id, subject, award.xp_earned, now)
            else:
                progress = None
            self.db.commit()
        except (SQLAlchemyError, LookupError) as e:
            self.db.rollback()
            logger.error(f"Failed to record freeform prompt for user={user_id}: {e}")
            raise StorageException("record prompt attempt", e) from e

        if progress is None:
            progress = self.progress.get_progress(user_id, subject)

        logger.info(json.dumps({
            "step": "PROMPT_ATTEMPT",
            "user_id": user_id,
            "subject": subject.label,
            "success": success,
            "xp_earned": award.xp_earned,
            "reason": award.reason.value,
            "window_xp": sum(entry.xp_earned for entry in history),
        }))
        return AttemptResult(xp_earned=award.xp_earned, reason=award.reason, progress=progress)
