"""
LLM Service: thin OpenAI chat-completions client with retry logic.

Used by the challenge prompt generator. Rate limits and timeouts are retried
with exponential backoff; any other OpenAI error fails immediately.
"""

import json
import time
from typing import Any, Callable, Dict, List, Optional
from openai import OpenAI, OpenAIError, RateLimitError, APITimeoutError
import logging

logger = logging.getLogger(__name__)


class LLMServiceError(Exception):
    """Custom exception for LLM service errors"""
    pass


class LLMService:
    """Service for making chat-completion calls with retry and structured logging."""

    def __init__(
        self,
        api_key: str,
        *,
        model_id: str,
        temperature: float = 0.7,
        max_retries: int = 3,
        initial_retry_delay: float = 1.0,
        timeout: int = 60,
    ):
        self.client = OpenAI(api_key=api_key)
        self.model_id = model_id
        self.temperature = temperature
        self.max_retries = max_retries
        self.initial_retry_delay = initial_retry_delay
        self.timeout = timeout

    def chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        """
        Run a chat completion and return the assistant text.

        Args:
            messages: OpenAI-style [{"role": ..., "content": ...}] list
            max_tokens: Completion token budget
            json_mode: Ask the model for a JSON object response

        Returns:
            Raw message content ("" if the model returned nothing)

        Raises:
            LLMServiceError: On non-retryable errors or after retries are exhausted
        """
        logger.info(json.dumps({
            "step": "LLM_CALL",
            "status": "starting",
            "model": self.model_id,
            "params": {"json_mode": json_mode, "messages": len(messages)}
        }))

        def _api_call():
            kwargs = {
                "model": self.model_id,
                "messages": messages,
                "max_completion_tokens": max_tokens,
                "temperature": self.temperature,
                "timeout": self.timeout,
            }
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}
            response = self.client.chat.completions.create(**kwargs)
            return response.choices[0].message.content or ""

        return self._execute_with_retry(_api_call, self.model_id)

    def complete(self, system_prompt: str, user_prompt: Optional[str] = None, **kwargs) -> str:
        """Convenience wrapper for a single system (+ optional user) turn."""
        messages = [{"role": "system", "content": system_prompt}]
        if user_prompt:
            messages.append({"role": "user", "content": user_prompt})
        return self.chat(messages, **kwargs)

    def _execute_with_retry(self, api_call_fn: Callable[[], Any], model_name: str) -> Any:
        """Execute API call with exponential backoff retry logic."""
        last_error = None
        delay = self.initial_retry_delay
        start_time = time.time()

        for attempt in range(self.max_retries):
            try:
                result = api_call_fn()
                duration_ms = int((time.time() - start_time) * 1000)

                logger.info(json.dumps({
                    "step": "LLM_CALL",
                    "status": "complete",
                    "model": model_name,
                    "output": {"response_length": len(str(result)) if result else 0},
                    "duration_ms": duration_ms,
                    "attempts": attempt + 1
                }))
                return result

            except RateLimitError as e:
                last_error = e
                logger.warning(
                    f"{model_name} rate limit hit (attempt {attempt + 1}/{self.max_retries}). "
                    f"Retrying in {delay}s..."
                )
                time.sleep(delay)
                delay *= 2

            except APITimeoutError as e:
                last_error = e
                logger.warning(
                    f"{model_name} timeout (attempt {attempt + 1}/{self.max_retries}). "
                    f"Retrying in {delay}s..."
                )
                time.sleep(delay)
                delay *= 2

            except OpenAIError as e:
                logger.error(f"{model_name} API error: {str(e)}")
                raise LLMServiceError(f"{model_name} API error: {str(e)}") from e

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(json.dumps({
            "step": "LLM_CALL",
            "status": "failed",
            "model": model_name,
            "error": str(last_error),
            "duration_ms": duration_ms,
            "attempts": self.max_retries
        }))
        raise LLMServiceError(
            f"{model_name} failed after {self.max_retries} attempts. Last error: {str(last_error)}"
        ) from last_error


def build_llm_service() -> LLMService:
    """Construct the service from application settings."""
    from config import get_settings

    settings = get_settings()
    return LLMService(
        api_key=settings.openai_api_key,
        model_id=settings.llm_model,
        temperature=settings.llm_temperature,
        max_retries=settings.llm_max_retries,
        timeout=settings.llm_timeout,
    )
