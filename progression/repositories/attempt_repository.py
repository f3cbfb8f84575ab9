"""Challenge attempt and freeform prompt attempt data access layer."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

from shared.models.domain import Subject
from shared.models.entities import Challenge, UserChallengeAttempt, UserPromptAttempt


class AttemptRepository:
    """
    Challenge attempt ledger.

    ``add`` flushes immediately so a duplicate (user, challenge) pair
    surfaces as an IntegrityError inside the caller's transaction.
    """

    def __init__(self, db: DBSession):
        self.db = db

    def get(self, user_id: str, challenge_id: int) -> Optional[UserChallengeAttempt]:
        return (
            self.db.query(UserChallengeAttempt)
            .filter(
                UserChallengeAttempt.user_id == user_id,
                UserChallengeAttempt.challenge_id == challenge_id,
            )
            .first()
        )

    def exists(self, user_id: str, challenge_id: int) -> bool:
        return self.get(user_id, challenge_id) is not None

    def add(
        self,
        user_id: str,
        challenge: Challenge,
        success: bool,
        attempts: int,
        used_hint: bool,
        xp_earned: int,
        now: datetime,
    ) -> UserChallengeAttempt:
        record = UserChallengeAttempt(
            user_id=user_id,
            challenge_id=challenge.id,
            subject_id=challenge.subject_id,
            success=success,
            attempts=attempts,
            used_hint=used_hint,
            xp_earned=xp_earned,
            created_at=now,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def completed_difficulties(self, user_id: str, subject: Subject) -> List[int]:
        """Distinct difficulties of challenges the user answered correctly, ascending."""
        rows = (
            self.db.query(Challenge.difficulty)
            .join(UserChallengeAttempt, UserChallengeAttempt.challenge_id == Challenge.id)
            .filter(
                UserChallengeAttempt.user_id == user_id,
                UserChallengeAttempt.subject_id == int(subject),
                UserChallengeAttempt.success.is_(True),
            )
            .distinct()
            .order_by(Challenge.difficulty.asc())
            .all()
        )
        return [row.difficulty for row in rows]


class PromptAttemptRepository:
    """Append-only freeform prompt log."""

    def __init__(self, db: DBSession):
        self.db = db

    def list_since(self, user_id: str, since: datetime) -> List[UserPromptAttempt]:
        """All of a user's freeform prompts after ``since``, across subjects."""
        return (
            self.db.query(UserPromptAttempt)
            .filter(UserPromptAttempt.user_id == user_id, UserPromptAttempt.timestamp > since)
            .order_by(UserPromptAttempt.timestamp.asc())
            .all()
        )

    def add(
        self,
        user_id: str,
        subject: Subject,
        prompt: str,
        success: bool,
        attempts: int,
        used_hint: bool,
        xp_earned: int,
        now: datetime,
    ) -> UserPromptAttempt:
        record = UserPromptAttempt(
            user_id=user_id,
            subject_id=int(subject),
            prompt=prompt,
            success=success,
            attempts=attempts,
            used_hint=used_hint,
            xp_earned=xp_earned,
            timestamp=now,
        )
        self.db.add(record)
        self.db.flush()
        return record
