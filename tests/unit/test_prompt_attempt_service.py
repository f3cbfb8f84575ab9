"""Unit tests for progression/services/prompt_attempt_service.py."""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from progression.services.prompt_attempt_service import PromptAttemptService
from shared.models.domain import AwardReason, Subject
from shared.models.entities import UserPromptAttempt
from shared.utils.exceptions import StorageException


class TestRecordPromptAttempt:

    def test_success_awards_two_xp(self, db_session, clock, progress_row):
        result = PromptAttemptService(db_session, clock=clock).record_prompt_attempt(
            "kid-1", Subject.EXPLORATION, "Why do birds migrate?", success=True
        )
        assert result.xp_earned == 2
        assert result.reason == AwardReason.AWARDED
        assert result.progress.xp == 2
        assert progress_row(subject=Subject.EXPLORATION).xp == 2

    def test_every_prompt_is_logged(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock)
        service.record_prompt_attempt("kid-1", Subject.MATH, "what is 3 + 4", success=False, attempts=2)
        service.record_prompt_attempt("kid-1", Subject.MATH, "what is 3 + 4", success=True)
        rows = db_session.query(UserPromptAttempt).order_by(UserPromptAttempt.id).all()
        assert [(r.success, r.xp_earned) for r in rows] == [(False, 0), (True, 0)]
        assert rows[0].attempts == 2

    def test_failure_creates_no_progress_row(self, db_session, clock, progress_row):
        result = PromptAttemptService(db_session, clock=clock).record_prompt_attempt(
            "kid-1", Subject.MATH, "what is 3 + 4", success=False
        )
        assert result.reason == AwardReason.FAILED
        assert result.progress.xp == 0
        assert progress_row() is None


class TestHourlyCap:

    def test_sixth_prompt_within_the_hour_earns_nothing(self, db_session, clock, progress_row):
        service = PromptAttemptService(db_session, clock=clock)
        earned = []
        for i in range(6):
            clock.advance(minutes=5)
            earned.append(service.record_prompt_attempt("kid-1", Subject.MATH, f"q{i}", success=True).xp_earned)

        assert earned == [2, 2, 2, 2, 2, 0]
        assert progress_row().xp == 10

    def test_rate_limited_reason(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock)
        for i in range(5):
            service.record_prompt_attempt("kid-1", Subject.MATH, f"q{i}", success=True)
        result = service.record_prompt_attempt("kid-1", Subject.MATH, "q5", success=True)
        assert result.reason == AwardReason.RATE_LIMITED

    def test_xp_returns_after_window_slides(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock)
        for i in range(5):
            service.record_prompt_attempt("kid-1", Subject.MATH, f"q{i}", success=True)
        clock.advance(minutes=61)
        result = service.record_prompt_attempt("kid-1", Subject.MATH, "q-later", success=True)
        assert result.xp_earned == 2

    def test_cap_spans_subjects(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock)
        subjects = [Subject.MATH, Subject.READING, Subject.SPELLING, Subject.EXPLORATION, Subject.MATH]
        for i, subject in enumerate(subjects):
            service.record_prompt_attempt("kid-1", subject, f"q{i}", success=True)
        result = service.record_prompt_attempt("kid-1", Subject.READING, "q-extra", success=True)
        assert result.xp_earned == 0

    def test_cap_is_per_user(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock)
        for i in range(5):
            service.record_prompt_attempt("kid-1", Subject.MATH, f"q{i}", success=True)
        result = service.record_prompt_attempt("kid-2", Subject.MATH, "q0", success=True)
        assert result.xp_earned == 2

    def test_configured_limits_are_used(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock, xp_per_prompt=3, cap=4, window_minutes=30)
        first = service.record_prompt_attempt("kid-1", Subject.MATH, "a", success=True)
        second = service.record_prompt_attempt("kid-1", Subject.MATH, "b", success=True)
        assert (first.xp_earned, second.xp_earned) == (3, 1)
        assert second.reason == AwardReason.CAPPED


class TestRepeatedPrompts:

    def test_normalized_repeat_earns_nothing(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock)
        service.record_prompt_attempt("kid-1", Subject.READING, "What is a noun?", success=True)
        clock.advance(minutes=10)
        result = service.record_prompt_attempt("kid-1", Subject.READING, "  what is a NOUN?", success=True)
        assert result.xp_earned == 0
        assert result.reason == AwardReason.REPEATED_PROMPT


class TestConcurrentCap:

    def test_window_is_read_under_the_row_lock(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock)
        calls = []
        with patch.object(service.progress, "lock_user_rows", side_effect=lambda user_id: calls.append("lock")), \
             patch.object(service.prompts, "list_since", side_effect=lambda *a: calls.append("history") or []):
            service.record_prompt_attempt("kid-1", Subject.MATH, "what is 5 + 5", success=True)

        assert calls == ["lock", "history"]

    def test_lock_covers_every_subject_row(self, db_session, clock):
        service = PromptAttemptService(db_session, clock=clock)
        service.record_prompt_attempt("kid-1", Subject.MATH, "q0", success=True)
        service.record_prompt_attempt("kid-1", Subject.READING, "q1", success=True)

        assert service.progress.lock_user_rows("kid-1") == 2
        db_session.rollback()

    def test_failure_takes_no_lock(self, db_session, clock, progress_row):
        service = PromptAttemptService(db_session, clock=clock)
        with patch.object(service.progress, "lock_user_rows") as mock_lock:
            service.record_prompt_attempt("kid-1", Subject.MATH, "what is 3 + 4", success=False)

        mock_lock.assert_not_called()
        assert progress_row() is None


class TestStorageFailure:

    def test_failed_increment_rolls_back_log_row(self, db_session, clock, progress_row):
        service = PromptAttemptService(db_session, clock=clock)
        with patch.object(
            service.progress, "apply_xp", side_effect=OperationalError("UPDATE", {}, Exception("locked"))
        ):
            with pytest.raises(StorageException):
                service.record_prompt_attempt("kid-1", Subject.MATH, "what is 9 - 3", success=True)

        assert db_session.query(UserPromptAttempt).count() == 0
        assert progress_row().xp == 0
