"""Challenge and active-challenge data access layer."""
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session as DBSession

from shared.models.domain import Subject
from shared.models.entities import ActiveChallenge, Challenge


class ChallengeRepository:
    """Append-only access to generated challenges."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_by_id(self, challenge_id: int) -> Optional[Challenge]:
        return self.db.query(Challenge).filter(Challenge.id == challenge_id).first()

    def create(
        self,
        subject: Subject,
        prompt: str,
        difficulty: int,
        prompt_type: Optional[str],
        now: datetime,
    ) -> Challenge:
        """Insert a challenge and flush so its id is available. Does not commit."""
        challenge = Challenge(
            subject_id=int(subject),
            prompt=prompt,
            difficulty=difficulty,
            prompt_type=prompt_type,
            created_at=now,
        )
        self.db.add(challenge)
        self.db.flush()
        return challenge

    def list_by_difficulty(self, subject: Subject, min_difficulty: int, max_difficulty: int) -> List[Challenge]:
        return (
            self.db.query(Challenge)
            .filter(
                Challenge.subject_id == int(subject),
                Challenge.difficulty >= min_difficulty,
                Challenge.difficulty <= max_difficulty,
            )
            .order_by(Challenge.difficulty.asc(), Challenge.id.asc())
            .all()
        )


class ActiveChallengeRepository:
    """Per (user, subject) cursor rows. Writes flush but never commit."""

    def __init__(self, db: DBSession):
        self.db = db

    def get(self, user_id: str, subject: Subject, for_update: bool = False) -> Optional[ActiveChallenge]:
        query = self.db.query(ActiveChallenge).filter(
            ActiveChallenge.user_id == user_id,
            ActiveChallenge.subject_id == int(subject),
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def list_for_user(self, user_id: str) -> List[ActiveChallenge]:
        return (
            self.db.query(ActiveChallenge)
            .filter(ActiveChallenge.user_id == user_id)
            .order_by(ActiveChallenge.subject_id)
            .all()
        )

    def upsert(
        self,
        user_id: str,
        subject: Subject,
        challenge: Challenge,
        last_reset: date,
        now: datetime,
    ) -> ActiveChallenge:
        """Point the (user, subject) cursor at ``challenge``."""
        active = self.get(user_id, subject, for_update=True)
        if active is None:
            active = ActiveChallenge(user_id=user_id, subject_id=int(subject))
            self.db.add(active)

        active.challenge_id = challenge.id
        active.difficulty = challenge.difficulty
        active.prompt_type = challenge.prompt_type
        active.last_reset = last_reset
        active.updated_at = now
        self.db.flush()
        return active

    def reset_all(self, user_id: str, today: date, now: datetime) -> int:
        """Drop every subject of a user back to difficulty 1 for ``today``."""
        result = self.db.execute(
            update(ActiveChallenge)
            .where(ActiveChallenge.user_id == user_id)
            .values(difficulty=1, prompt_type=None, last_reset=today, updated_at=now)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount
