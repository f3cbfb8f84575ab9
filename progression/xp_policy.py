"""
XP award policy.

Pure functions: callers supply the challenge difficulty or the recent
freeform history and persist whatever is returned.
"""
from datetime import datetime, timedelta
from typing import Iterable

from shared.models.domain import AwardReason, PromptHistoryEntry, XpAward
from shared.utils.constants import (
    ATTEMPT_XP_PERCENT,
    FREEFORM_WINDOW_MINUTES,
    FREEFORM_XP_CAP,
    FREEFORM_XP_PER_PROMPT,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    XP_PER_DIFFICULTY,
)


def clamp_difficulty(difficulty: int) -> int:
    return max(MIN_DIFFICULTY, min(difficulty, MAX_DIFFICULTY))


def max_challenge_xp(difficulty: int) -> int:
    return clamp_difficulty(difficulty) * XP_PER_DIFFICULTY


def challenge_award(success: bool, attempts: int, difficulty: int) -> XpAward:
    """
    XP for a challenge solved on attempt number ``attempts``.

    Full XP on the first attempt, then 70%, 50% and 20% of it; nothing on failure.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")
    if not success:
        return XpAward(xp_earned=0, reason=AwardReason.FAILED)

    percent = ATTEMPT_XP_PERCENT[min(attempts, len(ATTEMPT_XP_PERCENT)) - 1]
    # integer math: 30 * 0.7 is 20.999... in floating point
    xp = max_challenge_xp(difficulty) * percent // 100
    return XpAward(xp_earned=xp, reason=AwardReason.AWARDED)


def normalize_prompt(prompt: str) -> str:
    return prompt.strip().casefold()


def freeform_award(
    success: bool,
    prompt: str,
    history: Iterable[PromptHistoryEntry],
    now: datetime,
    xp_per_prompt: int = FREEFORM_XP_PER_PROMPT,
    cap: int = FREEFORM_XP_CAP,
    window_minutes: int = FREEFORM_WINDOW_MINUTES,
) -> XpAward:
    """
    XP for a freeform question, capped per user over a sliding window.

    Args:
        success: Whether the tutor judged the answer correct
        prompt: The question text as submitted
        history: The user's earlier freeform prompts; entries outside the window are ignored
        now: Submission time, same clock as the history timestamps

    Returns:
        XpAward; repeated prompts inside the window earn 0 whatever the outcome
    """
    window_start = now - timedelta(minutes=window_minutes)
    recent = [entry for entry in history if window_start < entry.timestamp <= now]

    normalized = normalize_prompt(prompt)
    if any(normalize_prompt(entry.prompt) == normalized for entry in recent):
        return XpAward(xp_earned=0, reason=AwardReason.REPEATED_PROMPT)

    if not success:
        return XpAward(xp_earned=0, reason=AwardReason.FAILED)

    remaining = max(cap - sum(entry.xp_earned for entry in recent), 0)
    if remaining == 0:
        return XpAward(xp_earned=0, reason=AwardReason.RATE_LIMITED)
    if xp_per_prompt > remaining:
        return XpAward(xp_earned=remaining, reason=AwardReason.CAPPED)
    return XpAward(xp_earned=xp_per_prompt, reason=AwardReason.AWARDED)
