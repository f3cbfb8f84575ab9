"""Business logic layer - services for XP and challenge progression."""
from .progress_service import ProgressService
from .attempt_service import AttemptService
from .prompt_attempt_service import PromptAttemptService
from .prompt_generator import ChallengePromptGenerator, detect_prompt_type
from .challenge_service import ChallengeService
from .submission_service import SubmissionService

__all__ = [
    "ProgressService",
    "AttemptService",
    "PromptAttemptService",
    "ChallengePromptGenerator",
    "detect_prompt_type",
    "ChallengeService",
    "SubmissionService",
]
