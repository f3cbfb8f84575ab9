"""Ties the attempt ledger to the challenge lifecycle for one submission."""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy.orm import Session as DBSession

from progression.services.attempt_service import AttemptService
from progression.services.challenge_service import ChallengeService
from progression.services.prompt_generator import ChallengePromptGenerator
from shared.models.domain import AttemptResult, ChallengeView, Subject
from shared.utils.exceptions import BrightStepsException
from shared.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


class SubmissionService:
    """
    Records a challenge attempt and, on a correct answer to the active challenge, issues the next one.

    A correct answer after a recorded failure earns no XP (the ledger already
    holds the outcome) but still moves the subject on. Only the challenge the
    cursor points at advances, so a double submit never advances twice.

    XP is committed before generation starts. If generation then fails the
    award stands, the old challenge stays active and ``next_challenge`` is None.
    """

    def __init__(
        self,
        db: DBSession,
        generator: ChallengePromptGenerator,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ledger = AttemptService(db, clock=clock)
        self.lifecycle = ChallengeService(db, generator=generator, clock=clock)

    def submit_challenge_attempt(
        self,
        user_id: str,
        challenge_id: int,
        success: bool,
        attempts: int,
        used_hint: bool = False,
    ) -> Tuple[AttemptResult, Optional[ChallengeView]]:
        result = self.ledger.record_challenge_attempt(user_id, challenge_id, success, attempts, used_hint)
        if not success:
            return result, None

        subject = result.progress.subject
        try:
            active = self.lifecycle.get_active_challenge(user_id, subject)
            if active is None or active.challenge_id != challenge_id:
                return result, None
            next_challenge = self.lifecycle.advance_challenge(user_id, subject)
        except BrightStepsException as e:
            logger.warning(f"Next challenge not issued for user={user_id} after challenge={challenge_id}: {e}")
            next_challenge = None
        return result, next_challenge
