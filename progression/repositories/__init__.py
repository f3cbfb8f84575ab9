"""Data access layer - repository pattern for progression tables."""
from .progress_repository import ProgressRepository
from .challenge_repository import ChallengeRepository, ActiveChallengeRepository
from .attempt_repository import AttemptRepository, PromptAttemptRepository

__all__ = [
    "ProgressRepository",
    "ChallengeRepository",
    "ActiveChallengeRepository",
    "AttemptRepository",
    "PromptAttemptRepository",
]
