"""
Challenge prompt generator.

Asks the LLM for one new question per call and tags it with a prompt type
so the next generation can avoid repeating the same kind of question.
"""

import logging
import re
from typing import Optional

from shared.models.domain import Subject
from shared.services.llm_service import LLMService, LLMServiceError
from shared.utils.constants import MAX_CHALLENGE_TOKENS
from shared.utils.exceptions import ChallengeGenerationException

logger = logging.getLogger(__name__)


# Ordered (pattern, type) rules; first match wins, last entry per subject is the fallback.
_PROMPT_TYPE_RULES = {
    Subject.MATH: [
        (re.compile(r"missing number|❓"), "missing_number"),
        (re.compile(r"real[- ]?life|bus|apples|shopping|story"), "word_problem"),
        (re.compile(r"pattern|sequence"), "pattern"),
        (re.compile(r"estimate", re.IGNORECASE), "estimation"),
        (None, "arithmetic"),
    ],
    Subject.READING: [
        (re.compile(r"main idea", re.IGNORECASE), "main_idea"),
        (re.compile(r"character|happen next|why", re.IGNORECASE), "inference"),
        (re.compile(r"means the same as", re.IGNORECASE), "vocabulary"),
        (None, "reading_comprehension"),
    ],
    Subject.SPELLING: [
        (re.compile(r"spell the word", re.IGNORECASE), "fill_in"),
        (re.compile(r"which word is spelled correctly", re.IGNORECASE), "multiple_choice"),
        (re.compile(r"fix the spelling", re.IGNORECASE), "correction"),
        (None, "spelling_basic"),
    ],
    Subject.EXPLORATION: [
        (re.compile(r"why|what happens", re.IGNORECASE), "curiosity_question"),
        (re.compile(r"name a|identify a", re.IGNORECASE), "fact_question"),
        (None, "exploration_general"),
    ],
}

_VARIATION_INSTRUCTIONS = {
    Subject.MATH: """
Rotate between different types of math problems:
- Arithmetic (addition, subtraction, multiplication, division)
- Word problems set in everyday situations
- Patterns and sequences
- Comparisons (greater/less)
- Estimation
- Missing number (e.g., 3 + ❓ = 10)
""",
    Subject.READING: """
Ask reading comprehension questions such as:
- What is the main idea?
- What might happen next?
- Why did the character do that?
- Which word means the same as...?
Include a short fictional or factual passage suited to the level.
""",
    Subject.SPELLING: """
Create spelling challenges such as:
- "Which word is spelled correctly: A) freind, B) friend, C) freand?"
- "Spell the word that means a small dog."
- "Fix the spelling mistake in: 'The boy runned to the store.'"
""",
    Subject.EXPLORATION: """
Ask open-ended or knowledge-building questions about:
- Nature (e.g., Why do birds migrate?)
- Science (e.g., What happens when water boils?)
- Geography (e.g., Name a place that is always cold)
""",
}


def detect_prompt_type(prompt: str, subject: Subject) -> str:
    """Classify a generated question by keyword rules for its subject."""
    for pattern, prompt_type in _PROMPT_TYPE_RULES[subject]:
        if pattern is None or pattern.search(prompt):
            return prompt_type
    return "general"


def build_challenge_prompt(
    subject: Subject,
    level: int,
    previous_prompt: Optional[str],
    previous_prompt_type: Optional[str],
) -> str:
    """System prompt asking for the next, slightly harder challenge."""
    history = (
        f'- Previous challenge: "{previous_prompt}"'
        if previous_prompt
        else "- This is the student's first challenge."
    )
    if previous_prompt_type:
        history += f"\n- Previous type: {previous_prompt_type}"
        avoid = f'\nDo not repeat the previous question type, which was "{previous_prompt_type}".'
    else:
        avoid = ""

    return f"""
You write challenge questions for a child studying {subject.label}.

### Student
- Level: {level}
{history}

### Task
Write one new challenge that is slightly harder than the last one.

### Rules
1. Add one more step, slightly larger numbers, or slightly deeper reasoning.
2. Keep it short, clear and suitable for level {level}.
3. Do NOT include the answer or an explanation.
4. Return only the question.
{_VARIATION_INSTRUCTIONS[subject]}{avoid}
""".strip()


class ChallengePromptGenerator:
    """Turns (subject, level, history) into a question via the LLM service."""

    def __init__(self, llm_service: LLMService):
        self.llm = llm_service

    def generate_prompt(
        self,
        subject: Subject,
        level: int,
        previous_prompt: Optional[str] = None,
        previous_prompt_type: Optional[str] = None,
    ) -> str:
        """
        Returns:
            Non-empty question text

        Raises:
            ChallengeGenerationException: LLM failure or empty output
        """
        system_prompt = build_challenge_prompt(subject, level, previous_prompt, previous_prompt_type)
        try:
            text = self.llm.complete(system_prompt, max_tokens=MAX_CHALLENGE_TOKENS)
        except LLMServiceError as e:
            logger.error(f"Challenge generation failed for {subject.label}: {e}")
            raise ChallengeGenerationException("LLM call failed", e) from e

        text = (text or "").strip()
        if not text:
            raise ChallengeGenerationException("LLM returned an empty challenge")
        return text
