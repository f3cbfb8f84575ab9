"""
Challenge lifecycle.

Per (user, subject) state machine: no active challenge, then always exactly
one. Each advance writes a challenge one step harder than the current one,
clamped to 1..5. The first advance of a new calendar day (in the configured
reset timezone) starts again from difficulty 1, and if any subject of the
user is stale every subject is reset together.

Generation is all-or-nothing: the LLM is called before anything is written,
and the reset, the new challenge and the cursor update commit together.
"""

import json
import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from config import get_settings
from progression.repositories import ActiveChallengeRepository, ChallengeRepository
from progression.services.progress_service import ProgressService
from progression.services.prompt_generator import ChallengePromptGenerator, detect_prompt_type
from progression.xp_policy import clamp_difficulty
from shared.models.domain import ChallengeView, Subject
from shared.models.entities import ActiveChallenge, Challenge
from shared.utils.exceptions import StorageException
from shared.utils.time_utils import calendar_date, utc_now

logger = logging.getLogger(__name__)


def to_view(challenge: Challenge, active: Optional[ActiveChallenge] = None) -> ChallengeView:
    return ChallengeView(
        challenge_id=challenge.id,
        subject=Subject(challenge.subject_id),
        prompt=challenge.prompt,
        difficulty=challenge.difficulty,
        prompt_type=challenge.prompt_type,
        last_reset=active.last_reset if active else None,
    )


class ChallengeService:
    """Issues, rotates and reads active challenges."""

    def __init__(
        self,
        db: DBSession,
        generator: Optional[ChallengePromptGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
        reset_timezone: Optional[str] = None,
    ):
        self.db = db
        self.generator = generator
        self.clock = clock
        self.reset_timezone = reset_timezone or get_settings().reset_timezone
        self.challenges = ChallengeRepository(db)
        self.active = ActiveChallengeRepository(db)
        self.progress = ProgressService(db)

    def get_active_challenge(self, user_id: str, subject: Subject) -> Optional[ChallengeView]:
        """Current challenge for a subject, or None before the first advance."""
        try:
            active = self.active.get(user_id, subject)
            if active is None:
                return None
            return to_view(active.challenge, active)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("read active challenge", e) from e

    def advance_challenge(self, user_id: str, subject: Subject) -> ChallengeView:
        """
        Generate and activate the next challenge for a subject.

        Raises:
            ChallengeGenerationException: Nothing was written; the previous challenge stays active
            StorageException: The write failed and was rolled back
        """
        if self.generator is None:
            raise RuntimeError("ChallengeService needs a prompt generator to advance challenges")

        now = self.clock()
        today = calendar_date(now, self.reset_timezone)

        try:
            rows = self.active.list_for_user(user_id)
            current = next((row for row in rows if row.subject_id == int(subject)), None)
            stale_subjects = [Subject(row.subject_id).label for row in rows if row.last_reset != today]
            needs_reset = current is None or bool(stale_subjects)

            previous_prompt = current.challenge.prompt if current else None
            if needs_reset:
                previous_difficulty, previous_type = 0, None
            else:
                previous_difficulty, previous_type = current.difficulty, current.prompt_type
            level = self.progress.get_progress(user_id, subject).level
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("read challenge state", e) from e

        prompt = self.generator.generate_prompt(subject, level, previous_prompt, previous_type)
        prompt_type = detect_prompt_type(prompt, subject)
        difficulty = clamp_difficulty(previous_difficulty + 1)

        try:
            if stale_subjects:
                self.active.reset_all(user_id, today, now)
            challenge = self.challenges.create(subject, prompt, difficulty, prompt_type, now)
            active = self.active.upsert(user_id, subject, challenge, today, now)
            self.db.commit()
        except SQLAlchemyError as e:
            # includes a concurrent advance inserting the cursor row first
            self.db.rollback()
            raise StorageException("activate challenge", e) from e

        if stale_subjects:
            logger.info(json.dumps({
                "step": "DAILY_RESET",
                "user_id": user_id,
                "stale_subjects": stale_subjects,
                "today": today.isoformat(),
            }))
        logger.info(json.dumps({
            "step": "CHALLENGE_ADVANCE",
            "user_id": user_id,
            "subject": subject.label,
            "challenge_id": challenge.id,
            "difficulty": difficulty,
            "prompt_type": prompt_type,
        }))
        return to_view(challenge, active)

    def list_challenges(self, subject: Subject, min_difficulty: int, max_difficulty: int) -> List[ChallengeView]:
        """Stored challenges of a subject inside a difficulty band, easiest first."""
        try:
            rows = self.challenges.list_by_difficulty(subject, min_difficulty, max_difficulty)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("list challenges", e) from e
        return [to_view(row) for row in rows]
