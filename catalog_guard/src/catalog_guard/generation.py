"""
Generation service boundary.

The engine only needs `generate(system_context, user_prompt, history) -> str`.
OpenAIGenerationService is the production transport: it owns the
per-call timeout and the bounded exponential backoff on transient
failures. Validation-triggered retries live in correction.py and are a
different concern.
"""

import asyncio
from typing import Optional, Protocol, Sequence

import openai
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .config import Settings, get_settings
from .errors import (
    GenerationError,
    GenerationFailedError,
    GenerationOverloadedError,
    GenerationTimeoutError,
)
from .logging_conf import get_logger

logger = get_logger(__name__)


class GenerationService(Protocol):
    """Anything that turns a prompt plus prior turns into raw reply text."""

    async def generate(
        self,
        system_context: str,
        user_prompt: str,
        history: Sequence[dict] = (),
    ) -> str:
        ...


def build_messages(system_context: str, user_prompt: str, history: Sequence[dict] = ()) -> list[dict]:
    """Chat messages in call order: system, prior turns, new user turn."""
    messages = [{"role": "system", "content": system_context}]
    messages.extend({"role": turn["role"], "content": turn["content"]} for turn in history)
    messages.append({"role": "user", "content": user_prompt})
    return messages


def _translate_error(exc: Exception, timeout: Optional[float]) -> GenerationError:
    """Map OpenAI client errors onto the engine's typed failures."""
    if isinstance(exc, openai.APITimeoutError):
        return GenerationTimeoutError(timeout)
    if isinstance(exc, (openai.RateLimitError, openai.APIConnectionError, openai.InternalServerError)):
        return GenerationOverloadedError(str(exc))
    return GenerationFailedError(str(exc))


class OpenAIGenerationService:
    """
    Chat-completions transport with timeout, cancellation and backoff.

    Timeouts and overload errors are retried up to
    settings.generation_max_retries attempts; anything else is terminal.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        if client is None:
            if not self.settings.openai_api_key:
                raise GenerationFailedError(
                    "No OpenAI API key configured (set CATALOG_GUARD_OPENAI_API_KEY)"
                )
            client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        self.client = client
        self.model = self.settings.openai_model
        self.timeout = self.settings.generation_timeout
        self.retry_wait = wait_exponential(multiplier=1, min=2, max=30)

        logger.info("generation_service_initialized", model=self.model)

    async def _call_once(self, messages: list[dict]) -> str:
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.settings.generation_temperature,
                    max_tokens=self.settings.generation_max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise GenerationTimeoutError(self.timeout)
        except openai.OpenAIError as e:
            raise _translate_error(e, self.timeout) from e

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise GenerationFailedError("Generation reply had no content")
        return content

    async def generate(
        self,
        system_context: str,
        user_prompt: str,
        history: Sequence[dict] = (),
    ) -> str:
        """
        Issue one logical generation call.

        Args:
            system_context: System prompt
            user_prompt: New user turn
            history: Prior turns as {"role", "content"} dicts

        Returns:
            Raw reply text

        Raises:
            GenerationTimeoutError: Every attempt timed out
            GenerationOverloadedError: Every attempt hit rate limits or 5xx
            GenerationFailedError: Definitive failure
        """
        messages = build_messages(system_context, user_prompt, history)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.settings.generation_max_retries),
            wait=self.retry_wait,
            retry=retry_if_exception(lambda e: getattr(e, "retryable", False)),
            reraise=True,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    logger.warning("generation_retry", attempt=attempt_number, model=self.model)
                text = await self._call_once(messages)

        logger.debug("generation_complete", model=self.model, chars=len(text))
        return text
