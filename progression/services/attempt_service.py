"""
Challenge attempt ledger.

Guarantees at most one XP award per (user, challenge). The existence check is
only a fast path; the unique constraint on user_challenge_attempts is what
actually rejects a racing second insert. The attempt row and the XP increment
commit in one transaction.
"""

import json
import logging
from datetime import datetime
from typing import Callable, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from progression.repositories import AttemptRepository, ChallengeRepository
from progression.services.progress_service import ProgressService
from progression.xp_policy import challenge_award
from shared.models.domain import AttemptResult, AwardReason, Subject
from shared.utils.exceptions import ChallengeNotFoundException, StorageException
from shared.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


class AttemptService:
    """Records challenge attempts and awards their XP exactly once."""

    def __init__(self, db: DBSession, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.attempts = AttemptRepository(db)
        self.challenges = ChallengeRepository(db)
        self.progress = ProgressService(db)

    def record_challenge_attempt(
        self,
        user_id: str,
        challenge_id: int,
        success: bool,
        attempts: int,
        used_hint: bool = False,
    ) -> AttemptResult:
        """
        Log an attempt and award XP from the challenge's stored difficulty.

        Steps:
        1. Resolve the challenge (NotFound if missing)
        2. Return a duplicate result if the pair was already recorded
        3. Compute XP via the award policy
        4. Insert the attempt row; a uniqueness violation is a duplicate too
        5. Increment progress in the same transaction and commit

        Raises:
            ChallengeNotFoundException: Unknown challenge id
            StorageException: Any database failure; nothing is committed
        """
        now = self.clock()
        try:
            challenge = self.challenges.get_by_id(challenge_id)
            if challenge is None:
                raise ChallengeNotFoundException(challenge_id)
            subject = Subject(challenge.subject_id)

            if self.attempts.exists(user_id, challenge_id):
                return self._duplicate(user_id, challenge_id, subject)

            award = challenge_award(success, attempts, challenge.difficulty)
            if award.xp_earned > 0:
                self.progress.ensure_row(user_id, subject)

            try:
                self.attempts.add(
                    user_id, challenge, success, attempts, used_hint, award.xp_earned, now
                )
            except IntegrityError:
                self.db.rollback()
                return self._duplicate(user_id, challenge_id, subject)

            if award.xp_earned > 0:
                progress = self.progress.apply_xp(user_id, subject, award.xp_earned, now)
            else:
                progress = None
            self.db.commit()
        except (SQLAlchemyError, LookupError) as e:
            self.db.rollback()
            logger.error(f"Failed to record attempt user={user_id} challenge={challenge_id}: {e}")
            raise StorageException("record challenge attempt", e) from e

        if progress is None:
            progress = self.progress.get_progress(user_id, subject)

        logger.info(json.dumps({
            "step": "CHALLENGE_ATTEMPT",
            "user_id": user_id,
            "challenge_id": challenge_id,
            "difficulty": challenge.difficulty,
            "success": success,
            "attempts": attempts,
            "xp_earned": award.xp_earned,
            "reason": award.reason.value,
        }))
        return AttemptResult(
            xp_earned=award.xp_earned,
            duplicate=False,
            reason=award.reason,
            progress=progress,
        )

    def has_answered(self, user_id: str, challenge_id: int) -> bool:
        try:
            return self.attempts.exists(user_id, challenge_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("read challenge attempts", e) from e

    def completed_levels(self, user_id: str, subject: Subject) -> List[int]:
        """Difficulties (1-5) the user has solved at least once in ``subject``."""
        try:
            return self.attempts.completed_difficulties(user_id, subject)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("read completed levels", e) from e

    def _duplicate(self, user_id: str, challenge_id: int, subject: Subject) -> AttemptResult:
        logger.info(json.dumps({
            "step": "CHALLENGE_ATTEMPT",
            "user_id": user_id,
            "challenge_id": challenge_id,
            "xp_earned": 0,
            "reason": AwardReason.DUPLICATE.value,
        }))
        return AttemptResult(
            xp_earned=0,
            duplicate=True,
            reason=AwardReason.DUPLICATE,
            progress=self.progress.get_progress(user_id, subject),
        )
