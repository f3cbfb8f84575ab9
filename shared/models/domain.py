"""Domain models for business logic."""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Subject(int, Enum):
    """Subjects of study. Values are the stable ids stored in every table."""
    MATH = 1
    READING = 2
    SPELLING = 3
    EXPLORATION = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "Subject":
        """Resolve a case-insensitive subject name; raises KeyError if unknown."""
        return cls[name.strip().upper()]


class AwardReason(str, Enum):
    """Why an attempt earned what it earned."""
    AWARDED = "awarded"
    FAILED = "failed"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"  # freeform cap already reached
    CAPPED = "capped"  # freeform award truncated to reach the cap
    REPEATED_PROMPT = "repeated_prompt"


class XpAward(BaseModel):
    """Result of the XP award policy."""
    xp_earned: int = Field(..., ge=0)
    reason: AwardReason


class PromptHistoryEntry(BaseModel):
    """A prior freeform prompt inside the rate-limit window."""
    prompt: str
    xp_earned: int = 0
    timestamp: datetime


class ProgressSnapshot(BaseModel):
    """XP/level view of one (user, subject) pair."""
    subject: Subject
    xp: int = 0
    level: int = 1
    xp_into_level: int = 0
    xp_for_next_level: int = 0


class ChallengeView(BaseModel):
    """A challenge as presented to a user."""
    challenge_id: int
    subject: Subject
    prompt: str
    difficulty: int = Field(..., ge=1, le=5)
    prompt_type: Optional[str] = None
    last_reset: Optional[date] = None


class AttemptResult(BaseModel):
    """Outcome of submitting a challenge or freeform attempt."""
    xp_earned: int = 0
    duplicate: bool = False
    reason: AwardReason
    progress: ProgressSnapshot
