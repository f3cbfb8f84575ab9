"""Progress store, the single source of truth for displayed XP and level."""

import json
import logging
from datetime import datetime
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from progression.level_curve import level_progress
from progression.repositories import ProgressRepository
from shared.models.domain import ProgressSnapshot, Subject
from shared.utils.constants import DEFAULT_XP
from shared.utils.exceptions import StorageException

logger = logging.getLogger(__name__)


def snapshot(subject: Subject, xp: int) -> ProgressSnapshot:
    """Project cumulative XP into the display model. Stored levels are never trusted."""
    return ProgressSnapshot(subject=subject, xp=xp, **level_progress(xp))


class ProgressService:
    """Reads per-subject progress and applies XP increments inside a caller's transaction."""

    def __init__(self, db: DBSession):
        self.db = db
        self.repo = ProgressRepository(db)

    def get_progress(self, user_id: str, subject: Subject) -> ProgressSnapshot:
        """XP and level for one subject; a missing row reads as xp=0, level=1."""
        try:
            row = self.repo.get(user_id, subject)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("read progress", e) from e
        return snapshot(subject, row.xp if row else DEFAULT_XP)

    def get_all_progress(self, user_id: str) -> List[ProgressSnapshot]:
        """One entry per subject, in subject id order."""
        try:
            rows = {row.subject_id: row.xp for row in self.repo.list_for_user(user_id)}
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageException("read progress", e) from e
        return [snapshot(subject, rows.get(int(subject), DEFAULT_XP)) for subject in Subject]

    def ensure_row(self, user_id: str, subject: Subject) -> None:
        """Lazily create the zero row. Commits on its own, so call before opening a unit of work."""
        self.repo.create_if_missing(user_id, subject)

    def lock_user_rows(self, user_id: str) -> int:
        """Row-lock all of the user's progress rows for the open transaction. Returns how many were locked."""
        return len(self.repo.lock_for_user(user_id))

    def apply_xp(self, user_id: str, subject: Subject, delta: int, now: datetime) -> ProgressSnapshot:
        """
        Atomically add XP. Joins the open transaction; the caller commits.

        Raises:
            SQLAlchemyError: Propagated so the caller can roll back its whole unit of work
            LookupError: If ``ensure_row`` was not called first
        """
        row = self.repo.increment_xp(user_id, subject, delta, now)
        logger.info(json.dumps({
            "step": "XP_INCREMENT",
            "user_id": user_id,
            "subject": subject.label,
            "delta": delta,
            "xp": row.xp,
            "level": row.level,
        }))
        return snapshot(subject, row.xp)
