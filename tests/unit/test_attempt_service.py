"""Unit tests for progression/services/attempt_service.py: the challenge attempt ledger."""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from progression.services.attempt_service import AttemptService
from shared.models.domain import AwardReason, Subject
from shared.models.entities import UserChallengeAttempt
from shared.utils.exceptions import ChallengeNotFoundException, StorageException


# ---------------------------------------------------------------------------
# record_challenge_attempt
# ---------------------------------------------------------------------------

class TestRecordChallengeAttempt:

    def test_first_try_success_awards_full_xp(self, db_session, clock, make_challenge, progress_row):
        challenge = make_challenge(difficulty=3)
        result = AttemptService(db_session, clock=clock).record_challenge_attempt(
            "kid-1", challenge.id, success=True, attempts=1
        )
        assert result.xp_earned == 30
        assert result.duplicate is False
        assert result.reason == AwardReason.AWARDED
        assert result.progress.xp == 30
        assert progress_row().xp == 30

    def test_attempt_row_is_logged(self, db_session, clock, make_challenge):
        challenge = make_challenge(difficulty=2)
        AttemptService(db_session, clock=clock).record_challenge_attempt(
            "kid-1", challenge.id, success=True, attempts=3, used_hint=True
        )
        row = db_session.query(UserChallengeAttempt).one()
        assert row.user_id == "kid-1"
        assert row.subject_id == int(Subject.MATH)
        assert row.attempts == 3
        assert row.used_hint is True
        assert row.xp_earned == 10
        assert row.created_at == clock.now

    def test_failure_is_recorded_with_zero_xp(self, db_session, clock, make_challenge, progress_row):
        challenge = make_challenge(difficulty=4)
        result = AttemptService(db_session, clock=clock).record_challenge_attempt(
            "kid-1", challenge.id, success=False, attempts=2
        )
        assert result.xp_earned == 0
        assert result.reason == AwardReason.FAILED
        assert result.progress.xp == 0
        assert progress_row() is None
        assert db_session.query(UserChallengeAttempt).count() == 1

    def test_unknown_challenge_raises_not_found(self, db_session, clock):
        with pytest.raises(ChallengeNotFoundException):
            AttemptService(db_session, clock=clock).record_challenge_attempt(
                "kid-1", 9999, success=True, attempts=1
            )

    def test_difficulty_comes_from_stored_challenge(self, db_session, clock, make_challenge):
        challenge = make_challenge(difficulty=5)
        result = AttemptService(db_session, clock=clock).record_challenge_attempt(
            "kid-1", challenge.id, success=True, attempts=2
        )
        assert result.xp_earned == 35


# ---------------------------------------------------------------------------
# At-most-once awards
# ---------------------------------------------------------------------------

class TestDuplicateAttempts:

    def test_second_submission_is_duplicate(self, db_session, clock, make_challenge, progress_row):
        challenge = make_challenge(difficulty=2)
        service = AttemptService(db_session, clock=clock)
        service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)
        again = service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)

        assert again.duplicate is True
        assert again.xp_earned == 0
        assert again.reason == AwardReason.DUPLICATE
        assert again.progress.xp == 20
        assert progress_row().xp == 20
        assert db_session.query(UserChallengeAttempt).count() == 1

    def test_failure_then_success_is_duplicate(self, db_session, clock, make_challenge, progress_row):
        """A resolved failure closes the challenge for XP."""
        challenge = make_challenge(difficulty=2)
        service = AttemptService(db_session, clock=clock)
        service.record_challenge_attempt("kid-1", challenge.id, success=False, attempts=4)
        again = service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=5)
        assert again.duplicate is True
        assert progress_row() is None

    def test_other_users_are_independent(self, db_session, clock, make_challenge):
        challenge = make_challenge(difficulty=1)
        service = AttemptService(db_session, clock=clock)
        service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)
        other = service.record_challenge_attempt("kid-2", challenge.id, success=True, attempts=1)
        assert other.duplicate is False
        assert other.xp_earned == 10

    def test_race_past_existence_check_is_caught_by_constraint(
        self, db_session, clock, make_challenge, progress_row
    ):
        """Two requests both pass the fast-path check; the unique constraint rejects the second."""
        challenge = make_challenge(difficulty=3)
        service = AttemptService(db_session, clock=clock)
        service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)

        with patch.object(service.attempts, "exists", return_value=False):
            racer = service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)

        assert racer.duplicate is True
        assert racer.xp_earned == 0
        assert progress_row().xp == 30
        assert db_session.query(UserChallengeAttempt).count() == 1


# ---------------------------------------------------------------------------
# Transaction boundaries
# ---------------------------------------------------------------------------

class TestAtomicity:

    def test_xp_failure_rolls_back_attempt_row(self, db_session, clock, make_challenge, progress_row):
        challenge = make_challenge(difficulty=2)
        service = AttemptService(db_session, clock=clock)

        with patch.object(
            service.progress, "apply_xp", side_effect=OperationalError("UPDATE", {}, Exception("locked"))
        ):
            with pytest.raises(StorageException) as exc_info:
                service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)

        assert exc_info.value.operation == "record challenge attempt"
        assert db_session.query(UserChallengeAttempt).count() == 0
        assert progress_row().xp == 0

    def test_retry_after_storage_failure_awards(self, db_session, clock, make_challenge):
        challenge = make_challenge(difficulty=2)
        service = AttemptService(db_session, clock=clock)

        with patch.object(
            service.progress, "apply_xp", side_effect=OperationalError("UPDATE", {}, Exception("locked"))
        ):
            with pytest.raises(StorageException):
                service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)

        result = service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)
        assert result.duplicate is False
        assert result.xp_earned == 20


# ---------------------------------------------------------------------------
# End-to-end XP accumulation
# ---------------------------------------------------------------------------

class TestAccumulation:

    def test_five_first_try_difficulty_two_solves_reach_level_two(
        self, db_session, clock, make_challenge, progress_row
    ):
        service = AttemptService(db_session, clock=clock)
        for i in range(5):
            challenge = make_challenge(difficulty=2, prompt=f"Question {i}")
            result = service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)
            assert result.xp_earned == 20

        assert result.progress.xp == 100
        assert result.progress.level == 2
        row = progress_row()
        assert row.xp == 100
        assert row.level == 2

    def test_subjects_accumulate_separately(self, db_session, clock, make_challenge, progress_row):
        service = AttemptService(db_session, clock=clock)
        math = make_challenge(subject=Subject.MATH, difficulty=1)
        reading = make_challenge(subject=Subject.READING, difficulty=5)
        service.record_challenge_attempt("kid-1", math.id, success=True, attempts=1)
        service.record_challenge_attempt("kid-1", reading.id, success=True, attempts=1)
        assert progress_row(subject=Subject.MATH).xp == 10
        assert progress_row(subject=Subject.READING).xp == 50


# ---------------------------------------------------------------------------
# Ledger reads
# ---------------------------------------------------------------------------

class TestLedgerReads:

    def test_has_answered(self, db_session, clock, make_challenge):
        challenge = make_challenge()
        service = AttemptService(db_session, clock=clock)
        assert service.has_answered("kid-1", challenge.id) is False
        service.record_challenge_attempt("kid-1", challenge.id, success=False, attempts=1)
        assert service.has_answered("kid-1", challenge.id) is True
        assert service.has_answered("kid-2", challenge.id) is False

    def test_completed_levels_counts_only_successes(self, db_session, clock, make_challenge):
        service = AttemptService(db_session, clock=clock)
        for difficulty, success in [(3, True), (1, True), (3, True), (4, False)]:
            challenge = make_challenge(difficulty=difficulty)
            service.record_challenge_attempt("kid-1", challenge.id, success=success, attempts=1)
        assert service.completed_levels("kid-1", Subject.MATH) == [1, 3]

    def test_completed_levels_is_per_subject(self, db_session, clock, make_challenge):
        service = AttemptService(db_session, clock=clock)
        challenge = make_challenge(subject=Subject.SPELLING, difficulty=2)
        service.record_challenge_attempt("kid-1", challenge.id, success=True, attempts=1)
        assert service.completed_levels("kid-1", Subject.MATH) == []
        assert service.completed_levels("kid-1", Subject.SPELLING) == [2]
