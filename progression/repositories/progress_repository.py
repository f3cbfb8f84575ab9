"""User progress data access layer."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from progression.level_curve import level_from_xp
from shared.models.domain import Subject
from shared.models.entities import UserProgress

logger = logging.getLogger(__name__)

class ProgressRepository:
    """
    Reads and atomically increments per (user, subject) XP.

    ``increment_xp`` does not commit; it joins whatever transaction the
    caller has open so the XP change lands together with the attempt row.
    """

    def __init__(self, db: DBSession):
        self.db = db

    def get(self, user_id: str, subject: Subject) -> Optional[UserProgress]:
        return (
            self.db.query(UserProgress)
            .filter(UserProgress.user_id == user_id, UserProgress.subject_id == int(subject))
            .first()
        )

    def list_for_user(self, user_id: str) -> List[UserProgress]:
        return (
            self.db.query(UserProgress)
            .filter(UserProgress.user_id == user_id)
            .order_by(UserProgress.subject_id)
            .all()
        )

    def lock_for_user(self, user_id: str) -> List[UserProgress]:
        """
        SELECT ... FOR UPDATE every progress row the user has.

        Held until the caller's transaction ends. SQLite ignores the
        clause and serializes writers on its own.
        """
        return (
            self.db.query(UserProgress)
            .filter(UserProgress.user_id == user_id)
            .order_by(UserProgress.subject_id)
            .with_for_update()
            .all()
        )

    def create_if_missing(self, user_id: str, subject: Subject) -> None:
        """
        Insert the zero row for a pair in its own short transaction.

        A concurrent request may insert the same row first; the unique
        constraint rejects ours and the existing row is kept.
        """
        if self.get(user_id, subject) is not None:
            return
        self.db.add(UserProgress(user_id=user_id, subject_id=int(subject), xp=0, level=1))
        try:
            self.db.commit()
            logger.info(f"Created progress row for user={user_id} subject={subject.label}")
        except IntegrityError:
            self.db.rollback()

    def increment_xp(self, user_id: str, subject: Subject, delta: int, now: datetime) -> UserProgress:
        """
        Add ``delta`` XP server-side and re-derive the level.

        The row must exist (see ``create_if_missing``). The UPDATE takes the
        row lock, so the re-read below sees this transaction's total.
        """
        if delta < 0:
            raise ValueError("XP is never decremented")

        filters = (UserProgress.user_id == user_id, UserProgress.subject_id == int(subject))
        result = self.db.execute(
            update(UserProgress)
            .where(*filters)
            .values(xp=UserProgress.xp + delta, last_updated=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise LookupError(f"No progress row for user={user_id} subject={subject.label}")

        row = self.db.query(UserProgress).filter(*filters).populate_existing().one()
        row.level = level_from_xp(row.xp)
        self.db.flush()
        return row
