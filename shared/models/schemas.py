"""Pydantic API request/response schemas."""
from pydantic import BaseModel, Field
from typing import List, Optional

from .domain import AwardReason, ChallengeView, ProgressSnapshot


class SubjectResponse(BaseModel):
    """Subject id lookup by name."""
    id: int
    name: str


class ProgressResponse(BaseModel):
    """XP and level for every subject of the current user."""
    subjects: List[ProgressSnapshot]


class ChallengeAttemptRequest(BaseModel):
    """A resolved challenge attempt from the chat layer."""
    challenge_id: int
    success: bool
    attempts: int = Field(1, ge=1)
    used_hint: bool = False


class ChallengeAttemptResponse(BaseModel):
    """XP outcome plus the next challenge when the answer was correct."""
    xp_earned: int
    duplicate: bool
    reason: AwardReason
    progress: ProgressSnapshot
    next_challenge: Optional[ChallengeView] = None


class PromptAttemptRequest(BaseModel):
    """A freeform (non-challenge) question from the chat layer."""
    subject: str
    prompt: str = Field(..., min_length=1)
    success: bool
    attempts: int = Field(1, ge=1)
    used_hint: bool = False


class PromptAttemptResponse(BaseModel):
    """XP outcome of a freeform question."""
    xp_earned: int
    reason: AwardReason
    progress: ProgressSnapshot


class ActiveChallengeResponse(BaseModel):
    """Current challenge for a subject, or null before the first generation."""
    challenge: Optional[ChallengeView] = None


class AnsweredResponse(BaseModel):
    already_answered: bool


class CompletedLevelsResponse(BaseModel):
    completed_levels: List[int]
