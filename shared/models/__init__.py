"""Shared models: ORM entities, domain objects and API schemas."""
from .entities import (
    Base,
    UserProgress,
    Challenge,
    ActiveChallenge,
    UserChallengeAttempt,
    UserPromptAttempt,
)
from .domain import (
    Subject,
    AwardReason,
    XpAward,
    PromptHistoryEntry,
    ProgressSnapshot,
    ChallengeView,
    AttemptResult,
)
from .schemas import (
    SubjectResponse,
    ProgressResponse,
    ChallengeAttemptRequest,
    ChallengeAttemptResponse,
    PromptAttemptRequest,
    PromptAttemptResponse,
    ActiveChallengeResponse,
    AnsweredResponse,
    CompletedLevelsResponse,
)
