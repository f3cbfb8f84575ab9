"""Shared FastAPI dependencies for progression routes."""
from progression.services.prompt_generator import ChallengePromptGenerator
from shared.models.domain import Subject
from shared.services.llm_service import build_llm_service
from shared.utils.exceptions import SubjectNotFoundException

_generator: ChallengePromptGenerator | None = None


def get_prompt_generator() -> ChallengePromptGenerator:
    """Process-wide generator; overridden in tests."""
    global _generator
    if _generator is None:
        _generator = ChallengePromptGenerator(build_llm_service())
    return _generator


def resolve_subject(name: str) -> Subject:
    try:
        return Subject.from_name(name)
    except KeyError:
        raise SubjectNotFoundException(name)
