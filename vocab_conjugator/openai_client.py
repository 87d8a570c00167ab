"""Text generation client for OpenAI-compatible chat APIs, with retry logic."""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Protocol

import openai
import structlog
from tenacity import (
    RetryError,
    retry,
    stop_after_attempt,
    wait_exponential,
    wait_random,
    retry_if_exception_type,
)
from tenacity.wait import wait_base

from .config import (
    GENERATION_TIMEOUT_SECONDS,
    MODEL_NAME,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    TEMPERATURE,
)
from .errors import GenerationError

log = structlog.get_logger()

Admit = Callable[[], Awaitable[None]]


class TextGenerator(Protocol):
    """Anything that turns a prompt into free text.

    ``admit`` must be awaited before every request sent to the backing
    service, retries included.
    """

    async def generate(self, prompt: str, admit: Optional[Admit] = None) -> str:
        ...


def create_openai_retry_decorator(attempts: int = 5, wait: Optional[wait_base] = None):
    """Create a retry decorator for OpenAI API calls."""
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait or (wait_exponential(multiplier=2, max=60) + wait_random(0, 1)),
        retry=retry_if_exception_type((
            openai.RateLimitError,
            openai.APITimeoutError,
            openai.APIConnectionError,
            openai.InternalServerError,
        ))
    )


class OpenAIGenerator:
    """Generate text through the chat completions API.

    ``base_url`` lets the same client talk to any OpenAI-compatible endpoint,
    such as Gemini's.
    """

    def __init__(
        self,
        model: str = MODEL_NAME,
        api_key: Optional[str] = OPENAI_API_KEY,
        base_url: Optional[str] = OPENAI_BASE_URL,
        temperature: float = TEMPERATURE,
        timeout: float = GENERATION_TIMEOUT_SECONDS,
        retry_attempts: int = 5,
        retry_wait: Optional[wait_base] = None,
    ):
        if not api_key:
            raise GenerationError("OPENAI_API_KEY is not configured")
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_wait = retry_wait
        self.client = openai.OpenAI(api_key=api_key, base_url=base_url)

    async def generate(self, prompt: str, admit: Optional[Admit] = None) -> str:
        messages = [{"role": "user", "content": prompt}]
        return await self.call_chat(messages, admit)

    async def call_chat(self, messages: List[Dict[str, str]], admit: Optional[Admit] = None) -> str:
        """Call the chat API with retry logic; every attempt is admitted first."""

        @create_openai_retry_decorator(self.retry_attempts, self.retry_wait)
        async def _make_api_call():
            if admit is not None:
                await admit()
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(
                None,
                lambda: self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    timeout=self.timeout,
                )
            )
            return response.choices[0].message.content or ""

        try:
            return await _make_api_call()
        except RetryError as e:
            actual_exception = e.last_attempt.exception()
            log.error("Chat API call failed after retries",
                      error=str(actual_exception),
                      model=self.model,
                      attempts=e.last_attempt.attempt_number)
            raise actual_exception
        except Exception as e:
            log.error("Chat API call failed", error=str(e), model=self.model)
            raise
